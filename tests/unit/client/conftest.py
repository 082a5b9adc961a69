"""
Client Test Fixtures.

An in-memory NoteGateway so the store can be exercised without HTTP,
with hooks to hold a response back or make a call fail.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from notecore.backend.core.exceptions import ApplicationError
from notecore.backend.core.pagination import Cursor, ListFilter
from notecore.backend.schemas.note import (
    NoteCreate,
    NoteListPage,
    NoteResponse,
    NoteSearchResult,
)
from notecore.client.state import list_item_from_note, sort_key

BASE = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _note(note_id: str, seconds: int = 0, **fields: Any) -> NoteResponse:
    """Full note whose timestamps are `seconds` after a fixed base time."""
    values: dict[str, Any] = {
        "id": note_id,
        "title": note_id.upper(),
        "content": "",
        "folder_id": None,
        "created_at": BASE,
        "updated_at": BASE + timedelta(seconds=seconds),
    }
    values.update(fields)
    return NoteResponse(**values)


class FakeGateway:
    """
    NoteGateway backed by a dict.

    gates[note_id] holds get_note for that id until the event is set.
    update_errors / delete_error make the next calls raise.
    """

    def __init__(self, notes: list[NoteResponse] | None = None) -> None:
        self.notes = {note.id: note for note in notes or []}
        self.gates: dict[str, asyncio.Event] = {}
        self.list_gate: asyncio.Event | None = None
        self.list_calls: list[tuple[ListFilter, Cursor | None, int]] = []
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.update_errors: list[ApplicationError] = []
        self.delete_error: ApplicationError | None = None
        self.search_error: ApplicationError | None = None
        self.created = 0
        self.closed = False

    async def list_notes(self, filters: ListFilter, cursor: Cursor | None, limit: int) -> NoteListPage:
        self.list_calls.append((filters, cursor, limit))
        if self.list_gate is not None:
            await self.list_gate.wait()

        items = sorted(
            (list_item_from_note(n) for n in self.notes.values()),
            key=sort_key,
            reverse=True,
        )
        if filters.folder_id is not None:
            items = [i for i in items if i.folder_id == filters.folder_id]
        if cursor is not None:
            items = [i for i in items if sort_key(i) < (cursor.updated_at, cursor.id)]

        page, rest = items[:limit], items[limit:]
        last = page[-1] if rest else None
        return NoteListPage(
            data=page,
            next_cursor=last.updated_at if last else None,
            next_cursor_id=last.id if last else None,
        )

    async def get_note(self, note_id: str) -> NoteResponse | None:
        gate = self.gates.get(note_id)
        if gate is not None:
            await gate.wait()
        return self.notes.get(note_id)

    async def create_note(self, data: NoteCreate) -> NoteResponse:
        self.created += 1
        note = _note(
            f"new-{self.created}",
            3600,
            title=data.title or "Untitled",
            content=data.content or "",
        )
        self.notes[note.id] = note
        return note

    async def update_note(self, note_id: str, patch: dict[str, Any]) -> NoteResponse | None:
        self.updates.append((note_id, dict(patch)))
        if self.update_errors:
            raise self.update_errors.pop(0)
        note = self.notes.get(note_id)
        if note is None:
            return None
        saved = note.model_copy(
            update={**patch, "updated_at": note.updated_at + timedelta(hours=1)}
        )
        self.notes[note_id] = saved
        return saved

    async def delete_note(self, note_id: str) -> bool:
        if self.delete_error is not None:
            raise self.delete_error
        return self.notes.pop(note_id, None) is not None

    async def search_notes(self, query: str, limit: int) -> list[NoteSearchResult]:
        if self.search_error is not None:
            raise self.search_error
        return [
            NoteSearchResult(**list_item_from_note(n).model_dump(), snippet=n.title)
            for n in self.notes.values()
            if query.lower() in n.title.lower()
        ][:limit]

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and returns at once."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway([_note("a", 1), _note("b", 2), _note("c", 3)])


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def build_note():
    """Factory for full notes: build_note("a", 5, title="Alpha")."""
    return _note


@pytest.fixture
def make_gateway():
    """Factory for gateways with a custom set of notes."""
    return FakeGateway
