"""
Note Service.

Business logic layer for notes. Applies the content rules (link
sanitizing, summary derivation, default title) before anything reaches
the repository, and shapes repository results into wire schemas.
"""

from datetime import datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from notecore.backend.core.markdown import derive_summary, sanitize_content
from notecore.backend.core.pagination import KeysetParams, ListFilter
from notecore.backend.core.search_query import normalize_search_query
from notecore.backend.core.utils import utc_now
from notecore.backend.models.note import DEFAULT_NOTE_TITLE, Note
from notecore.backend.repositories.note import NoteRepository
from notecore.backend.schemas.note import (
    NoteCreate,
    NoteListItem,
    NoteListPage,
    NoteSearchResult,
    NoteUpdate,
)
from notecore.backend.services.base import BaseService


def build_note_changes(fields: dict[str, Any], now: datetime) -> dict[str, Any]:
    """
    Turn the fields of an update request into column changes.

    updated_at is always rewritten. content is sanitized and summary
    re-derived only when content is part of the request, so a title-only
    change carries neither key.
    """
    changes: dict[str, Any] = {"updated_at": now}
    if "title" in fields:
        changes["title"] = fields["title"]
    if "content" in fields:
        content = sanitize_content(fields["content"])
        changes["content"] = content
        changes["summary"] = derive_summary(content)
    if "folder_id" in fields:
        changes["folder_id"] = fields["folder_id"]
    return changes


class NoteService(BaseService):
    """
    Service for note business logic.

    Missing notes are reported as None/False; translating that into a
    404 is left to the API layer.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.repo = NoteRepository(session)

    async def get_note(self, note_id: str) -> Note | None:
        return await self._execute_db_operation(
            "get_note",
            self.repo.get_by_id(note_id),
        )

    async def create_note(self, data: NoteCreate) -> Note:
        """
        Create a new note.

        Args:
            data: Note creation data

        Returns:
            Created note with server-assigned id and timestamps
        """
        content = sanitize_content(data.content or "")
        now = utc_now()

        self._log_operation("Creating note", folder_id=data.folder_id)

        note = await self._execute_db_operation(
            "create_note",
            self.repo.create_note(
                title=data.title or DEFAULT_NOTE_TITLE,
                content=content,
                summary=derive_summary(content),
                folder_id=data.folder_id,
                created_at=now,
                updated_at=now,
            ),
        )

        self._log_debug("Note created", note_id=note.id)
        return note

    async def update_note(self, note_id: str, data: NoteUpdate) -> Note | None:
        """
        Update an existing note.

        Args:
            note_id: Note ID to update
            data: Update data; only fields that were sent are applied

        Returns:
            Updated note, or None if it does not exist
        """
        fields = data.changed_fields()
        self._log_operation(
            "Updating note",
            note_id=note_id,
            fields=sorted(fields),
        )

        return await self._execute_db_operation(
            "update_note",
            self.repo.update_note(note_id, build_note_changes(fields, utc_now())),
        )

    async def delete_note(self, note_id: str) -> bool:
        """Delete a note. Returns False if it did not exist."""
        self._log_operation("Deleting note", note_id=note_id)

        return await self._execute_db_operation(
            "delete_note",
            self.repo.delete_note(note_id),
        )

    async def list_notes(self, filters: ListFilter, params: KeysetParams) -> NoteListPage:
        """
        List one page of notes, newest first.

        Args:
            filters: Folder/tag filter
            params: Page size and keyset cursor

        Returns:
            Page of list items plus the cursor pair of the next page
        """
        page = await self._execute_db_operation(
            "list_notes",
            self.repo.list_page(
                filters,
                params.cursor,
                params.limit,
                updated_before=params.cursor_before,
            ),
        )

        self._log_debug("Listed notes", count=len(page.items), has_more=page.has_more)
        next_cursor = page.next_cursor
        return NoteListPage(
            data=[NoteListItem.model_validate(row) for row in page.items],
            next_cursor=next_cursor.updated_at if next_cursor else None,
            next_cursor_id=next_cursor.id if next_cursor else None,
        )

    async def search_notes(self, query: str, limit: int) -> list[NoteSearchResult]:
        """
        Ranked full-text search over title, content and summary.

        Queries that normalize to nothing return an empty list without
        touching the index.
        """
        fts_query = normalize_search_query(query)
        if fts_query is None:
            self._log_debug("Search query empty after normalization", query=query)
            return []

        self._log_debug("Searching notes", query=fts_query, limit=limit)
        rows = await self._execute_db_operation(
            "search_notes",
            self.repo.search(fts_query, limit),
        )
        return [NoteSearchResult.model_validate(row) for row in rows]
