"""
Integration Tests for Keyset Pagination.

Tests the cursor contract of GET /api/v1/notes end to end.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from notecore.backend.models.folder import Folder
from notecore.backend.models.tag import NoteTag, Tag

NOTES = "/api/v1/notes"


async def _walk(client: AsyncClient, limit: int, **params) -> list[str]:
    seen: list[str] = []
    query = {"limit": limit, **params}
    while True:
        response = await client.get(NOTES, params=query)
        assert response.status_code == 200, response.text
        page = response.json()
        seen.extend(item["id"] for item in page["data"])
        if page["nextCursor"] is None:
            assert page["nextCursorId"] is None
            return seen
        query = {**query, "cursor": page["nextCursor"], "cursorId": page["nextCursorId"]}


class TestListNotes:
    """Tests for GET /api/v1/notes."""

    @pytest.mark.asyncio
    async def test_page_shape(self, client: AsyncClient, api, make_note):
        await make_note("a", 1, content="**bold** text")

        data = api.assert_ok(await client.get(NOTES))

        assert set(data) == {"data", "nextCursor", "nextCursorId"}
        item = data["data"][0]
        assert set(item) == {"id", "title", "summary", "folderId", "createdAt", "updatedAt"}
        assert item["summary"] == "bold text"

    @pytest.mark.asyncio
    async def test_tied_timestamps_paged_by_id(self, client: AsyncClient, api, make_note):
        await make_note("b", 5)
        await make_note("a", 5)
        await make_note("c", 3)

        first = api.assert_ok(await client.get(NOTES, params={"limit": 2}))
        assert [i["id"] for i in first["data"]] == ["b", "a"]
        assert first["nextCursorId"] == "a"

        second = api.assert_ok(
            await client.get(
                NOTES,
                params={"limit": 2, "cursor": first["nextCursor"], "cursorId": "a"},
            )
        )
        assert [i["id"] for i in second["data"]] == ["c"]
        assert second["nextCursor"] is None

    @pytest.mark.asyncio
    async def test_walk_returns_every_note_once(self, client: AsyncClient, make_note):
        for i in range(7):
            await make_note(f"n{i}", i % 3)

        seen = await _walk(client, limit=2)

        assert sorted(seen) == [f"n{i}" for i in range(7)]
        assert len(seen) == len(set(seen))

    @pytest.mark.asyncio
    async def test_cursor_without_id_is_strictly_before(self, client: AsyncClient, api, make_note):
        await make_note("b", 5)
        await make_note("a", 5)
        await make_note("c", 3)
        first = api.assert_ok(await client.get(NOTES, params={"limit": 1}))

        response = await client.get(NOTES, params={"cursor": first["nextCursor"]})

        assert [i["id"] for i in api.assert_ok(response)["data"]] == ["c"]

    @pytest.mark.asyncio
    async def test_folder_filter(self, client: AsyncClient, make_note, db_session: AsyncSession):
        db_session.add(Folder(id="f1", name="Work"))
        await db_session.flush()
        await make_note("a", 1, folder_id="f1")
        await make_note("b", 2)
        await make_note("c", 3, folder_id="f1")

        assert await _walk(client, 1, folderId="f1") == ["c", "a"]

    @pytest.mark.asyncio
    async def test_tag_filter(self, client: AsyncClient, make_note, db_session: AsyncSession):
        await make_note("a", 1)
        await make_note("b", 2)
        db_session.add(Tag(id="t1", name="urgent"))
        await db_session.flush()
        db_session.add(NoteTag(note_id="b", tag_id="t1"))
        await db_session.flush()

        assert await _walk(client, 10, tagId="t1") == ["b"]
        assert await _walk(client, 10, tagId="unused") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [0, 101])
    async def test_limit_out_of_range(self, client: AsyncClient, api, limit):
        api.assert_validation_error(await client.get(NOTES, params={"limit": limit}), field="limit")

    @pytest.mark.asyncio
    async def test_malformed_cursor_rejected(self, client: AsyncClient, api):
        response = await client.get(NOTES, params={"cursor": "yesterday", "cursorId": "a"})

        api.assert_validation_error(response, field="cursor")
