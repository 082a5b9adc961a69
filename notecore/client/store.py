"""
Optimistic Note Store.

Client-side cache of notes in front of a NoteGateway. Local edits are
applied synchronously before any network round trip; writes go through
the debounced SaveScheduler; note switches go through the SelectionGuard
so only the latest selection is ever shown.

Nothing here is module-level state: build one store per view (see
notecore.client.factory) and close it with aclose().
"""

import asyncio
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from typing import Any

from notecore.backend.core.exceptions import ApplicationError
from notecore.backend.core.logging import get_logger, log_with_source
from notecore.backend.core.pagination import ListFilter
from notecore.backend.core.utils import as_utc, utc_now
from notecore.backend.schemas.note import NoteCreate, NoteListItem, NoteResponse, NoteSearchResult
from notecore.client.api import NoteGateway
from notecore.client.autosave import AutosavePolicy, SaveScheduler, SleepFn
from notecore.client.selection import SelectionGuard
from notecore.client.state import (
    NotePatch,
    NoteStoreState,
    append_page,
    apply_local_patch,
    insert_ordered,
    list_item_from_note,
    reconcile_saved,
    replace_page,
    splice_out,
)

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 50
UNSAVED_WARNING = "Some changes could not be saved. They are kept locally."


def _client_now() -> datetime:
    return as_utc(utc_now())


class NoteStore:
    """
    Explicitly constructed note cache.

    state is replaced, never mutated in place, and every operation
    finishes its state change before it yields to the event loop.
    """

    def __init__(
        self,
        gateway: NoteGateway,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        autosave: AutosavePolicy | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], datetime] = _client_now,
    ) -> None:
        self.gateway = gateway
        self.page_size = page_size
        self.state = NoteStoreState()
        self.selection = SelectionGuard()
        self.scheduler = SaveScheduler(
            self.save_note,
            policy=autosave,
            on_result=self.on_save_result,
            sleep=sleep,
        )
        self._clock = clock
        # Bumped by every fetch_page; page results from older calls are dropped.
        self._page_generation = 0

    def _set(self, **changes: Any) -> None:
        self.state = replace(self.state, **changes)

    def _log(self, level: str, message: str, **context: Any) -> None:
        log_with_source(logger, "client", level, message, **context)

    # -------------------------------------------------------------------------
    # Page view
    # -------------------------------------------------------------------------

    async def fetch_page(self, filters: ListFilter | None = None) -> None:
        """
        Load the first page for a filter, replacing the current view.

        When calls overlap, only the latest one applies its result and
        clears is_fetching; earlier responses are discarded.
        """
        self._page_generation += 1
        generation = self._page_generation
        filters = filters if filters is not None else self.state.filter
        self._set(filter=filters, is_fetching=True, error=None)
        try:
            page = await self.gateway.list_notes(filters, None, self.page_size)
        except ApplicationError as e:
            if generation == self._page_generation:
                self._log("warning", "Failed to fetch notes", error=e.message)
                self._set(error=e.message)
        else:
            if generation == self._page_generation:
                self.state = replace_page(self.state, page)
        finally:
            if generation == self._page_generation:
                self._set(is_fetching=False)

    async def fetch_more(self) -> None:
        """
        Append the next page.

        No-op when the view is complete or a fetch is already running.
        """
        state = self.state
        if state.next_cursor is None or state.is_fetching or state.is_fetching_more:
            return

        generation = self._page_generation
        self._set(is_fetching_more=True, error=None)
        try:
            page = await self.gateway.list_notes(state.filter, state.next_cursor, self.page_size)
        except ApplicationError as e:
            self._log("warning", "Failed to fetch more notes", error=e.message)
            self._set(error=e.message)
        else:
            if generation == self._page_generation:
                self.state = append_page(self.state, page)
        finally:
            self._set(is_fetching_more=False)

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    async def select_note(self, note_id: str | None) -> None:
        """
        Make a note active, fetching its full content.

        Selecting None clears the active note at once. A response that
        arrives after a newer selection is discarded, including the
        cancellation of its request.
        """
        ticket = self.selection.issue()
        if note_id is None:
            self._set(active_note=None)
            return

        try:
            note = await self.selection.run(ticket, self.gateway.get_note(note_id))
        except asyncio.CancelledError:
            if self.selection.is_current(ticket):
                raise
            return
        except ApplicationError as e:
            if self.selection.is_current(ticket):
                self._log("warning", "Failed to fetch note", note_id=note_id, error=e.message)
                self._set(error=e.message)
            return

        if not self.selection.is_current(ticket):
            return
        if note is None:
            self._set(active_note=None, error=f"Note {note_id} not found")
            return
        self._set(active_note=note, error=None)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_note(self, data: NoteCreate | None = None) -> NoteResponse | None:
        """Create a note, insert it at its ordered position and make it active."""
        try:
            note = await self.gateway.create_note(data or NoteCreate())
        except ApplicationError as e:
            self._log("warning", "Failed to create note", error=e.message)
            self._set(error=e.message)
            return None

        self.selection.issue()
        self.state = insert_ordered(self.state, list_item_from_note(note))
        self._set(active_note=note)
        return note

    def update_local(self, note_id: str, patch: NotePatch) -> None:
        """Apply an edit to the cache synchronously."""
        self.state = apply_local_patch(self.state, note_id, patch, self._clock())

    def edit(self, note_id: str, patch: NotePatch) -> None:
        """Apply an edit locally and schedule it for saving."""
        self.update_local(note_id, patch)
        self.scheduler.schedule(note_id, dict(patch))

    async def save_note(self, note_id: str, patch: dict[str, Any]) -> NoteResponse | None:
        """
        Send a patch to the server and adopt the server timestamps.

        Errors propagate so the scheduler can retry. None means the note
        no longer exists on the server.
        """
        saved = await self.gateway.update_note(note_id, patch)
        if saved is not None:
            self.state = reconcile_saved(self.state, saved)
        return saved

    def on_save_result(self, note_id: str, ok: bool) -> None:
        """Track notes whose last save was abandoned."""
        unsaved = self.state.unsaved_ids
        if ok:
            unsaved = unsaved - {note_id}
        else:
            self._log("warning", "Giving up on saving note", note_id=note_id)
            unsaved = unsaved | {note_id}
        self._set(
            unsaved_ids=unsaved,
            warning=UNSAVED_WARNING if unsaved else None,
        )

    def remove(self, note_id: str) -> NoteListItem | None:
        """Drop a note from the view. Returns the removed row for restore()."""
        removed = self.state.notes.get(note_id)
        self.state = splice_out(self.state, note_id)
        return removed

    def restore(self, item: NoteListItem) -> None:
        """Put a removed row back at the position its timestamps dictate."""
        self.state = insert_ordered(self.state, item)

    async def delete_note(self, note_id: str) -> bool:
        """
        Delete a note optimistically.

        The row disappears at once and comes back if the server call
        fails. Deleting a note the server no longer has keeps it removed.
        """
        self.scheduler.cancel(note_id)
        if self.state.active_note is not None and self.state.active_note.id == note_id:
            self.selection.issue()
        removed = self.remove(note_id)

        try:
            deleted = await self.gateway.delete_note(note_id)
        except ApplicationError as e:
            self._log("warning", "Failed to delete note", note_id=note_id, error=e.message)
            if removed is not None:
                self.restore(removed)
            self._set(error=e.message)
            return False

        unsaved = self.state.unsaved_ids - {note_id}
        self._set(unsaved_ids=unsaved, warning=UNSAVED_WARNING if unsaved else None)
        return deleted

    # -------------------------------------------------------------------------
    # Search & lifecycle
    # -------------------------------------------------------------------------

    async def search(self, query: str, limit: int = 20) -> list[NoteSearchResult]:
        """Search notes; a failed request sets the error field and returns []."""
        try:
            return await self.gateway.search_notes(query, limit)
        except ApplicationError as e:
            self._log("warning", "Search failed", error=e.message)
            self._set(error=e.message)
            return []

    async def aclose(self, flush: bool = True) -> None:
        """
        Shut the store down and close the gateway.

        With flush=False unsent edits are dropped instead of sent; writes
        already running are still awaited.
        """
        if flush:
            await self.scheduler.drain()
        else:
            self.scheduler.cancel_all()
            await self.scheduler.drain()
        self.selection.cancel()
        await self.gateway.aclose()
