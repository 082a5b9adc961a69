"""
Note Repository.

Data access layer for notes. Handles all database operations for the
Note model and keeps the full-text index in step with every write.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.engine import Row
from sqlalchemy.ext.asyncio import AsyncSession

from notecore.backend.core.logging import get_logger
from notecore.backend.core.pagination import (
    Cursor,
    KeysetPage,
    ListFilter,
    build_keyset_page,
    keyset_order,
    keyset_predicate,
)
from notecore.backend.core.utils import to_naive_utc
from notecore.backend.models.note import Note
from notecore.backend.models.tag import NoteTag
from notecore.backend.repositories.base import BaseRepository
from notecore.backend.repositories.search_index import NoteSearchIndex

logger = get_logger(__name__)

LIST_COLUMNS = (
    Note.id,
    Note.title,
    Note.summary,
    Note.folder_id,
    Note.created_at,
    Note.updated_at,
)


def note_cursor(note: Note | Row) -> Cursor:
    """Cursor positioned at the given note."""
    return Cursor(updated_at=note.updated_at, id=note.id)


class NoteRepository(BaseRepository[Note]):
    """
    Repository for Note model.

    Row writes and index writes happen on the same session, so they
    commit or roll back together.
    """

    model = Note

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.index = NoteSearchIndex(session)

    async def list_page(
        self,
        filters: ListFilter,
        cursor: Cursor | None,
        limit: int,
        updated_before: datetime | None = None,
    ) -> KeysetPage[Row]:
        """
        Fetch one page of notes in (updated_at DESC, id DESC) order.

        Rows carry list-item columns only; content is never loaded.

        Args:
            filters: Folder/tag filter
            cursor: Continue strictly after this row
            limit: Page size (>= 1)
            updated_before: Timestamp-only cursor, used when no id was given

        Returns:
            Page of notes and the cursor of the next page, if any
        """
        stmt = select(*LIST_COLUMNS)

        if cursor is not None:
            stmt = stmt.where(keyset_predicate(Note.updated_at, Note.id, cursor))
        elif updated_before is not None:
            stmt = stmt.where(Note.updated_at < to_naive_utc(updated_before))

        if filters.folder_id is not None:
            stmt = stmt.where(Note.folder_id == filters.folder_id)

        if filters.tag_id is not None:
            tagged_ids = await self.tagged_note_ids(filters.tag_id)
            if not tagged_ids:
                return KeysetPage()
            stmt = stmt.where(Note.id.in_(tagged_ids))

        stmt = stmt.order_by(*keyset_order(Note.updated_at, Note.id)).limit(limit + 1)
        result = await self.session.execute(stmt)
        return build_keyset_page(list(result.all()), limit, key=note_cursor)

    async def tagged_note_ids(self, tag_id: str) -> list[str]:
        """Ids of notes carrying the given tag."""
        result = await self.session.execute(
            select(NoteTag.note_id).where(NoteTag.tag_id == tag_id)
        )
        return list(result.scalars().all())

    async def create_note(self, **values: Any) -> Note:
        """Insert a note and its index entry."""
        note = await self.create(**values)
        await self.index.add(note)
        return note

    async def update_note(self, id: str, changes: dict[str, Any]) -> Note | None:
        """
        Apply a prepared change set to a note.

        The index is re-synced only for indexed fields that changed:
        a title-only change leaves the indexed content and summary alone.

        Returns:
            Updated note, or None if it does not exist
        """
        note = await self.update(id, **changes)
        if note is None:
            return None

        if "content" in changes:
            await self.index.update_all(note)
        elif "title" in changes:
            await self.index.update_title(note)

        return note

    async def delete_note(self, id: str) -> bool:
        """
        Delete a note, its tag links and its index entry.

        Returns:
            False if the note did not exist
        """
        if not await self.exists(id):
            return False

        await self.session.execute(delete(NoteTag).where(NoteTag.note_id == id))
        await self.index.remove(id)
        await self.session.execute(delete(Note).where(Note.id == id))
        await self.session.flush()
        return True

    async def search(self, fts_query: str, limit: int) -> list[dict[str, Any]]:
        """Ranked full-text search with a normalized FTS5 query."""
        return await self.index.search(fts_query, limit)
