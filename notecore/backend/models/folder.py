"""
Folder Model.

Folders are managed elsewhere; the note core only filters by them.
"""

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from notecore.backend.models.base import Base, TimestampMixin, UUIDMixin


class Folder(UUIDMixin, TimestampMixin, Base):
    """Folder database model. A note belongs to at most one folder."""

    __tablename__ = "folders"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    parent_id: Mapped[str | None] = mapped_column(
        ForeignKey("folders.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Folder(id={self.id}, name={self.name!r})>"
