"""
FastAPI Dependencies.

Shared dependencies for request handling.
"""

from typing import Annotated

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from notecore.backend.core.database import get_db_session
from notecore.backend.core.pagination import ListFilter

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


def get_list_filter(
    folder_id: str | None = Query(
        default=None,
        alias="folderId",
        min_length=1,
        description="Only notes in this folder",
    ),
    tag_id: str | None = Query(
        default=None,
        alias="tagId",
        min_length=1,
        description="Only notes carrying this tag",
    ),
) -> ListFilter:
    """FastAPI dependency for note list filters."""
    return ListFilter(folder_id=folder_id, tag_id=tag_id)


NoteFilter = Annotated[ListFilter, Depends(get_list_filter)]
