"""
Note Search Index.

Keeps the notes_fts FTS5 table in step with the notes table. Every
method runs on the caller's session, so index writes share the
transaction of the row write they accompany.
"""

from typing import Any

from sqlalchemy import DateTime, String, Text, column, text
from sqlalchemy.ext.asyncio import AsyncSession

from notecore.backend.models.note import FTS_TABLE, Note

SNIPPET_OPEN = "<mark>"
SNIPPET_CLOSE = "</mark>"
SNIPPET_ELLIPSIS = "..."
SNIPPET_TOKENS = 32

_SEARCH_SQL = text(
    f"""
    SELECT n.id, n.title, n.summary, n.folder_id, n.created_at, n.updated_at,
           snippet({FTS_TABLE}, -1, '{SNIPPET_OPEN}', '{SNIPPET_CLOSE}', '{SNIPPET_ELLIPSIS}', {SNIPPET_TOKENS}) AS snippet
    FROM {FTS_TABLE}
    JOIN notes AS n ON n.id = {FTS_TABLE}.id
    WHERE {FTS_TABLE} MATCH :query
    ORDER BY rank
    LIMIT :limit
    """
).columns(
    column("id", String),
    column("title", String),
    column("summary", Text),
    column("folder_id", String),
    column("created_at", DateTime),
    column("updated_at", DateTime),
    column("snippet", Text),
)


class NoteSearchIndex:
    """Write and query access to the full-text index of notes."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, note: Note) -> None:
        """Index a freshly inserted note."""
        await self.session.execute(
            text(
                f"INSERT INTO {FTS_TABLE} (id, title, content, summary) "
                "VALUES (:id, :title, :content, :summary)"
            ),
            {
                "id": note.id,
                "title": note.title,
                "content": note.content or "",
                "summary": note.summary or "",
            },
        )

    async def update_title(self, note: Note) -> None:
        """Re-index the title only; indexed content and summary stay as they are."""
        await self.session.execute(
            text(f"UPDATE {FTS_TABLE} SET title = :title WHERE id = :id"),
            {"id": note.id, "title": note.title},
        )

    async def update_all(self, note: Note) -> None:
        """Re-index title, content and summary together."""
        await self.session.execute(
            text(
                f"UPDATE {FTS_TABLE} SET title = :title, content = :content, "
                "summary = :summary WHERE id = :id"
            ),
            {
                "id": note.id,
                "title": note.title,
                "content": note.content or "",
                "summary": note.summary or "",
            },
        )

    async def remove(self, note_id: str) -> None:
        """Drop a note's index entry; a missing entry is a no-op."""
        await self.session.execute(
            text(f"DELETE FROM {FTS_TABLE} WHERE id = :id"),
            {"id": note_id},
        )

    async def entry(self, note_id: str) -> dict[str, Any] | None:
        """Raw index entry for a note, or None."""
        result = await self.session.execute(
            text(f"SELECT id, title, content, summary FROM {FTS_TABLE} WHERE id = :id"),
            {"id": note_id},
        )
        row = result.mappings().first()
        return dict(row) if row is not None else None

    async def search(self, fts_query: str, limit: int) -> list[dict[str, Any]]:
        """
        Run an already-normalized FTS5 query.

        Returns:
            Rows of list-item columns plus a highlighted snippet,
            best match first
        """
        result = await self.session.execute(
            _SEARCH_SQL,
            {
                "query": fts_query,
                "limit": limit,
            },
        )
        return [dict(row) for row in result.mappings().all()]
