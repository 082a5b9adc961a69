"""
Note Model.

Database model for notes, plus the FTS5 index that shadows them.

The notes_fts table is a standalone FTS5 table (not an external-content
table and not trigger-driven): NoteRepository writes it in the same
transaction as the row it indexes.
"""

from sqlalchemy import DDL, ForeignKey, Index, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from notecore.backend.models.base import Base, TimestampMixin, UUIDMixin

DEFAULT_NOTE_TITLE = "Untitled"
MAX_TITLE_LENGTH = 500
MAX_CONTENT_LENGTH = 100_000

FTS_TABLE = "notes_fts"


class Note(UUIDMixin, TimestampMixin, Base):
    """
    Note database model.

    summary is always derive_summary(content) after any content write;
    it is never set independently.
    """

    __tablename__ = "notes"
    __table_args__ = (
        Index("idx_notes_cursor", "updated_at", "id"),
        Index("idx_notes_folder", "folder_id"),
    )

    title: Mapped[str] = mapped_column(
        String(MAX_TITLE_LENGTH),
        nullable=False,
        default=DEFAULT_NOTE_TITLE,
    )
    content: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    summary: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    folder_id: Mapped[str | None] = mapped_column(
        ForeignKey("folders.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r})>"


event.listen(
    Note.__table__,
    "after_create",
    DDL(
        f"CREATE VIRTUAL TABLE IF NOT EXISTS {FTS_TABLE} "
        "USING fts5(id UNINDEXED, title, content, summary)"
    ).execute_if(dialect="sqlite"),
)
event.listen(
    Note.__table__,
    "before_drop",
    DDL(f"DROP TABLE IF EXISTS {FTS_TABLE}").execute_if(dialect="sqlite"),
)
