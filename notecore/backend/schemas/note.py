"""
Note Schemas.

Pydantic schemas for note API request/response validation.
Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Self

from pydantic import ConfigDict, Field, model_validator

from notecore.backend.models.note import MAX_CONTENT_LENGTH, MAX_TITLE_LENGTH
from notecore.backend.schemas.base import UtcDatetime, WireModel


class NoteCreate(WireModel):
    """Schema for creating a new note. Every field is optional."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(
        default=None,
        max_length=MAX_TITLE_LENGTH,
        description="Note title; empty or missing becomes 'Untitled'",
        examples=["Groceries"],
    )
    content: str | None = Field(
        default=None,
        max_length=MAX_CONTENT_LENGTH,
        description="Markdown content",
        examples=["- milk\n- eggs"],
    )
    folder_id: str | None = Field(
        default=None,
        description="Folder the note belongs to",
    )


class NoteUpdate(WireModel):
    """
    Schema for updating an existing note.

    Only fields that were actually sent are applied. At least one
    field is required; title and content may be omitted but not null
    (send an empty string to clear content).
    """

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(
        default=None,
        max_length=MAX_TITLE_LENGTH,
        description="Note title",
    )
    content: str | None = Field(
        default=None,
        max_length=MAX_CONTENT_LENGTH,
        description="Markdown content",
    )
    folder_id: str | None = Field(
        default=None,
        description="Folder the note belongs to (null to unfile)",
    )

    @model_validator(mode="after")
    def _check_fields(self) -> Self:
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        for name in ("title", "content"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changed_fields(self) -> dict[str, str | None]:
        """Fields that were explicitly set, keyed by attribute name."""
        return self.model_dump(exclude_unset=True)


class NoteResponse(WireModel):
    """Full note as returned by single-note endpoints."""

    id: str = Field(description="Note unique identifier")
    title: str = Field(description="Note title")
    content: str | None = Field(description="Markdown content")
    summary: str | None = Field(
        default=None,
        description="Plain-text preview derived from content",
    )
    folder_id: str | None = Field(default=None, description="Folder id")
    created_at: UtcDatetime = Field(description="Creation timestamp")
    updated_at: UtcDatetime = Field(description="Last update timestamp")


class NoteListItem(WireModel):
    """Note projection used in lists: no content, plus the derived summary."""

    id: str
    title: str
    summary: str | None = None
    folder_id: str | None = None
    created_at: UtcDatetime
    updated_at: UtcDatetime


class NoteSearchResult(NoteListItem):
    """List item plus a highlighted fragment of the matching text."""

    snippet: str


class NoteListPage(WireModel):
    """One page of notes with the keyset cursor of the next page."""

    data: list[NoteListItem]
    next_cursor: UtcDatetime | None = None
    next_cursor_id: str | None = None


class DeleteResult(WireModel):
    """Outcome of a delete request."""

    success: bool
