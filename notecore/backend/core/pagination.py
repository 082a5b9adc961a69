"""
Keyset Pagination.

Cursor pagination over a total order of (updated_at DESC, id DESC).

updated_at alone is not unique, so the id is the tie-breaker: the cursor is
the (updated_at, id) pair of the last row returned, and the next page starts
strictly after it. Rows inserted or deleted between page fetches never shift
the window the way an offset would.

Usage:
    stmt = select(Note).order_by(*keyset_order(Note.updated_at, Note.id))
    if cursor is not None:
        stmt = stmt.where(keyset_predicate(Note.updated_at, Note.id, cursor))
    rows = (await session.execute(stmt.limit(limit + 1))).scalars().all()
    page = build_keyset_page(rows, limit, key=lambda n: Cursor(n.updated_at, n.id))
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

from fastapi import Query
from sqlalchemy import and_, or_
from sqlalchemy.sql.elements import ColumnElement

from notecore.backend.core.utils import to_naive_utc

T = TypeVar("T")


# =============================================================================
# Cursor & Filter
# =============================================================================


@dataclass(frozen=True, order=True)
class Cursor:
    """Position "strictly after this row" in (updated_at DESC, id DESC) order."""

    updated_at: datetime
    id: str


@dataclass(frozen=True)
class ListFilter:
    """Optional note list filters."""

    folder_id: str | None = None
    tag_id: str | None = None


@dataclass
class KeysetPage(Generic[T]):
    """One page of results plus the cursor for the next one (None at the end)."""

    items: list[T] = field(default_factory=list)
    next_cursor: Cursor | None = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


# =============================================================================
# Query Building
# =============================================================================


def keyset_order(updated_col: Any, id_col: Any) -> tuple[Any, Any]:
    """ORDER BY clauses for the pagination total order."""
    return updated_col.desc(), id_col.desc()


def keyset_predicate(
    updated_col: Any,
    id_col: Any,
    cursor: Cursor,
) -> ColumnElement[bool]:
    """
    WHERE clause selecting rows strictly after the cursor.

    updated_at < cursor.updated_at
    OR (updated_at = cursor.updated_at AND id < cursor.id)
    """
    updated_at = to_naive_utc(cursor.updated_at)
    return or_(
        updated_col < updated_at,
        and_(updated_col == updated_at, id_col < cursor.id),
    )


def build_keyset_page(
    rows: Sequence[T],
    limit: int,
    key: Callable[[T], Cursor],
) -> KeysetPage[T]:
    """
    Interpret a result fetched with LIMIT limit + 1.

    An extra row means there is another page: it is dropped and the
    cursor points at the last row actually returned.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")

    items = list(rows)
    if len(items) <= limit:
        return KeysetPage(items=items, next_cursor=None)

    items = items[:limit]
    return KeysetPage(items=items, next_cursor=key(items[-1]))


# =============================================================================
# Request Parameters
# =============================================================================


@dataclass
class KeysetParams:
    """Keyset pagination parameters extracted from the query string."""

    limit: int
    cursor: Cursor | None
    # cursor timestamp given without an id: strict "updated_at < cursor"
    cursor_before: datetime | None = None


def get_keyset_params(
    limit: int = Query(
        default=50,
        ge=1,
        le=100,
        description="Maximum number of items to return",
    ),
    cursor: datetime | None = Query(
        default=None,
        description="updatedAt of the last item of the previous page",
    ),
    cursor_id: str | None = Query(
        default=None,
        alias="cursorId",
        min_length=1,
        description="id of the last item of the previous page",
    ),
) -> KeysetParams:
    """
    FastAPI dependency for keyset pagination parameters.

    Usage:
        @router.get("/notes")
        async def list_notes(page: KeysetParams = Depends(get_keyset_params)):
            ...
    """
    if cursor is not None and cursor_id is not None:
        return KeysetParams(limit=limit, cursor=Cursor(cursor, cursor_id))
    return KeysetParams(limit=limit, cursor=None, cursor_before=cursor)
