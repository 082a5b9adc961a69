"""
Integration Tests for the Note Store over HTTP.

The store talks to the real application through httpx.ASGITransport.
Requests share one database session, so every step is awaited in turn.
"""

import pytest
from httpx import AsyncClient

from notecore.backend.schemas.note import NoteCreate
from notecore.client.api import NotesClient
from notecore.client.autosave import AutosavePolicy
from notecore.client.store import NoteStore


@pytest.fixture
def store(client: AsyncClient) -> NoteStore:
    return NoteStore(
        NotesClient(http_client=client),
        page_size=2,
        autosave=AutosavePolicy(quiet_window=60),
    )


class TestStoreAgainstApi:
    @pytest.mark.asyncio
    async def test_create_edit_and_reload(self, store: NoteStore):
        note = await store.create_note(NoteCreate(title="Groceries"))
        assert store.state.active_note.id == note.id

        store.edit(note.id, {"content": "**milk** and eggs"})
        await store.scheduler.flush()

        assert store.state.unsaved_ids == frozenset()
        saved = await store.gateway.get_note(note.id)
        assert saved.content == "**milk** and eggs"

        await store.fetch_page()
        assert store.state.notes[note.id].summary == "milk and eggs"

    @pytest.mark.asyncio
    async def test_fetch_more_walks_all_pages(self, store: NoteStore):
        created = [await store.create_note(NoteCreate(title=f"n{i}")) for i in range(5)]

        await store.fetch_page()
        while store.state.next_cursor is not None:
            await store.fetch_more()

        assert set(store.state.note_ids) == {n.id for n in created}
        assert len(store.state.note_ids) == 5

    @pytest.mark.asyncio
    async def test_search_and_delete(self, store: NoteStore):
        note = await store.create_note(NoteCreate(title="Quarterly report"))

        hits = await store.search("quart")
        assert [hit.id for hit in hits] == [note.id]

        assert await store.delete_note(note.id) is True
        assert await store.search("quart") == []
        assert await store.gateway.get_note(note.id) is None

    @pytest.mark.asyncio
    async def test_select_missing_note_sets_error(self, store: NoteStore):
        await store.select_note("ghost")

        assert store.state.active_note is None
        assert store.state.error == "Note ghost not found"
