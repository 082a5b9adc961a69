"""
Tag Models.

Tags and the note<->tag association table. Tag CRUD lives outside the
note core; notes only need tag ids for filtering and cleanup on delete.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from notecore.backend.core.utils import utc_now
from notecore.backend.models.base import Base, UUIDMixin


class Tag(UUIDMixin, Base):
    """Tag database model."""

    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name!r})>"


class NoteTag(Base):
    """Association row linking one note to one tag."""

    __tablename__ = "note_tags"
    __table_args__ = (
        Index("idx_note_tags_note", "note_id"),
        Index("idx_note_tags_tag", "tag_id"),
    )

    note_id: Mapped[str] = mapped_column(
        ForeignKey("notes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[str] = mapped_column(
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    )
