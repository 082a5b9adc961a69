"""
Client Cache State.

Immutable snapshot of what the client knows about notes: one page view
(ordered ids plus an id -> list item map) and at most one active note
with full content. Every transition is a pure function returning a new
snapshot; NoteStore is the only place that swaps snapshots.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Mapping, TypedDict

from notecore.backend.core.markdown import derive_summary
from notecore.backend.core.pagination import Cursor, ListFilter
from notecore.backend.schemas.note import NoteListItem, NoteListPage, NoteResponse


class NotePatch(TypedDict, total=False):
    """Editable note fields; absent keys are left unchanged."""

    title: str
    content: str
    folder_id: str | None


@dataclass(frozen=True)
class NoteStoreState:
    note_ids: tuple[str, ...] = ()
    notes: Mapping[str, NoteListItem] = field(default_factory=dict)
    active_note: NoteResponse | None = None
    next_cursor: Cursor | None = None
    filter: ListFilter = field(default_factory=ListFilter)
    is_fetching: bool = False
    is_fetching_more: bool = False
    error: str | None = None
    unsaved_ids: frozenset[str] = frozenset()
    warning: str | None = None

    @property
    def items(self) -> list[NoteListItem]:
        """Page view in display order."""
        return [self.notes[note_id] for note_id in self.note_ids]


def sort_key(item: NoteListItem) -> tuple[datetime, str]:
    return item.updated_at, item.id


def page_cursor(page: NoteListPage) -> Cursor | None:
    if page.next_cursor is None or page.next_cursor_id is None:
        return None
    return Cursor(updated_at=page.next_cursor, id=page.next_cursor_id)


def list_item_from_note(note: NoteResponse) -> NoteListItem:
    """List projection of a full note, with the summary derived locally."""
    return NoteListItem(
        id=note.id,
        title=note.title,
        summary=derive_summary(note.content),
        folder_id=note.folder_id,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


def replace_page(state: NoteStoreState, page: NoteListPage) -> NoteStoreState:
    return replace(
        state,
        note_ids=tuple(item.id for item in page.data),
        notes={item.id: item for item in page.data},
        next_cursor=page_cursor(page),
    )


def append_page(state: NoteStoreState, page: NoteListPage) -> NoteStoreState:
    """
    Append the next page to the view.

    Rows already in the view (e.g. a note that was edited and moved
    between page fetches) keep their current position.
    """
    fresh = [item for item in page.data if item.id not in state.notes]
    return replace(
        state,
        note_ids=state.note_ids + tuple(item.id for item in fresh),
        notes={**state.notes, **{item.id: item for item in fresh}},
        next_cursor=page_cursor(page),
    )


def apply_local_patch(
    state: NoteStoreState,
    note_id: str,
    patch: NotePatch,
    now: datetime,
) -> NoteStoreState:
    """
    Apply an edit to the list item and the active note.

    The list item stays where it is; only a refetch re-sorts the view.
    """
    summary_change: dict[str, Any] = {}
    if "content" in patch:
        summary_change["summary"] = derive_summary(patch["content"])

    notes = state.notes
    item = notes.get(note_id)
    if item is not None:
        item_changes: dict[str, Any] = {"updated_at": now, **summary_change}
        if "title" in patch:
            item_changes["title"] = patch["title"]
        if "folder_id" in patch:
            item_changes["folder_id"] = patch["folder_id"]
        notes = {**notes, note_id: item.model_copy(update=item_changes)}

    active = state.active_note
    if active is not None and active.id == note_id:
        active = active.model_copy(update={**patch, **summary_change, "updated_at": now})

    return replace(state, notes=notes, active_note=active)


def reconcile_saved(state: NoteStoreState, saved: NoteResponse) -> NoteStoreState:
    """Adopt server-assigned timestamps for a saved note; local fields win."""
    server_fields = {"created_at": saved.created_at, "updated_at": saved.updated_at}

    notes = state.notes
    if saved.id in notes:
        notes = {**notes, saved.id: notes[saved.id].model_copy(update=server_fields)}

    active = state.active_note
    if active is not None and active.id == saved.id:
        active = active.model_copy(update=server_fields)

    return replace(state, notes=notes, active_note=active)


def splice_out(state: NoteStoreState, note_id: str) -> NoteStoreState:
    """Drop a note from the view; clears the active note if it was selected."""
    state = _without(state, note_id)
    if state.active_note is not None and state.active_note.id == note_id:
        state = replace(state, active_note=None)
    return state


def insert_ordered(state: NoteStoreState, item: NoteListItem) -> NoteStoreState:
    """
    Insert (or move) a note to the position given by (updated_at, id) DESC.

    The new row goes before the first row that sorts below it, so the
    rest of the view keeps its relative order.
    """
    state = _without(state, item.id)
    key = sort_key(item)
    position = len(state.note_ids)
    for index, other_id in enumerate(state.note_ids):
        if sort_key(state.notes[other_id]) < key:
            position = index
            break

    ids = state.note_ids
    return replace(
        state,
        note_ids=ids[:position] + (item.id,) + ids[position:],
        notes={**state.notes, item.id: item},
    )


def _without(state: NoteStoreState, note_id: str) -> NoteStoreState:
    if note_id not in state.notes:
        return state
    return replace(
        state,
        note_ids=tuple(i for i in state.note_ids if i != note_id),
        notes={k: v for k, v in state.notes.items() if k != note_id},
    )
