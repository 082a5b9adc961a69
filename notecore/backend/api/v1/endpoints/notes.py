"""
Notes API Endpoints.

REST API endpoints for note retrieval and editing. Lists are keyset
paginated newest first; a missing note is a 404 with the standard error
envelope.
"""

from fastapi import APIRouter, Depends, Query

from notecore.backend.core.dependencies import DbSession, NoteFilter
from notecore.backend.core.exceptions import NotFoundError
from notecore.backend.core.pagination import KeysetParams, get_keyset_params
from notecore.backend.schemas.note import (
    DeleteResult,
    NoteCreate,
    NoteListPage,
    NoteResponse,
    NoteSearchResult,
    NoteUpdate,
)
from notecore.backend.services.note import NoteService

router = APIRouter()

SEARCH_MAX_QUERY_LENGTH = 200
SEARCH_DEFAULT_LIMIT = 20
SEARCH_MAX_LIMIT = 50


def _not_found(note_id: str) -> NotFoundError:
    return NotFoundError(f"Note {note_id} not found")


@router.get(
    "",
    response_model=NoteListPage,
    summary="List notes",
    description=(
        "List notes ordered by updatedAt then id, newest first. Pass the "
        "nextCursor/nextCursorId pair of a page to get the one after it."
    ),
)
async def list_notes(
    db: DbSession,
    filters: NoteFilter,
    page: KeysetParams = Depends(get_keyset_params),
) -> NoteListPage:
    service = NoteService(db)
    return await service.list_notes(filters, page)


@router.get(
    "/search",
    response_model=list[NoteSearchResult],
    summary="Search notes",
    description="Ranked prefix search over title, content and summary.",
)
async def search_notes(
    db: DbSession,
    q: str = Query(
        ...,
        min_length=1,
        max_length=SEARCH_MAX_QUERY_LENGTH,
        description="Search text",
    ),
    limit: int = Query(
        default=SEARCH_DEFAULT_LIMIT,
        ge=1,
        le=SEARCH_MAX_LIMIT,
        description="Maximum number of results",
    ),
) -> list[NoteSearchResult]:
    """Search notes; input made only of punctuation yields []."""
    service = NoteService(db)
    return await service.search_notes(q, limit)


@router.get(
    "/{note_id}",
    response_model=NoteResponse,
    summary="Get a note",
)
async def get_note(note_id: str, db: DbSession) -> NoteResponse:
    service = NoteService(db)
    note = await service.get_note(note_id)
    if note is None:
        raise _not_found(note_id)
    return NoteResponse.model_validate(note)


@router.post(
    "",
    response_model=NoteResponse,
    status_code=201,
    summary="Create a note",
    description="Every field is optional; the title defaults to 'Untitled'.",
)
async def create_note(
    data: NoteCreate,
    db: DbSession,
) -> NoteResponse:
    service = NoteService(db)
    note = await service.create_note(data)
    return NoteResponse.model_validate(note)


@router.patch(
    "/{note_id}",
    response_model=NoteResponse,
    summary="Update a note",
    description="Apply one or more of title, content and folderId.",
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    db: DbSession,
) -> NoteResponse:
    service = NoteService(db)
    note = await service.update_note(note_id, data)
    if note is None:
        raise _not_found(note_id)
    return NoteResponse.model_validate(note)


@router.delete(
    "/{note_id}",
    response_model=DeleteResult,
    summary="Delete a note",
    description="Delete a note together with its tag links and search entry.",
)
async def delete_note(
    note_id: str,
    db: DbSession,
) -> DeleteResult:
    service = NoteService(db)
    if not await service.delete_note(note_id):
        raise _not_found(note_id)
    return DeleteResult(success=True)
