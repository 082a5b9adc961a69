"""
Notes HTTP Gateway.

Async client for the notes API. Every response body goes through the
parse_or_reject boundary before it reaches typed code, and HTTP-level
failures are mapped onto the application error taxonomy:

    transport error, timeout, 5xx  -> TransientNetworkError
    400                            -> ValidationError
    404                            -> None / False
    anything else unusable         -> ExternalServiceError
"""

from typing import Any, Protocol

import httpx
from pydantic import RootModel

from notecore.backend.core.exceptions import (
    ExternalServiceError,
    TransientNetworkError,
    ValidationError,
)
from notecore.backend.core.logging import get_logger, log_with_source
from notecore.backend.core.pagination import Cursor, ListFilter
from notecore.backend.schemas.base import ErrorResponse, ModelT, Rejected, parse_or_reject
from notecore.backend.schemas.note import (
    DeleteResult,
    NoteCreate,
    NoteListPage,
    NoteResponse,
    NoteSearchResult,
    NoteUpdate,
)

logger = get_logger(__name__)

DEFAULT_API_PREFIX = "/api/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0


class NoteSearchResults(RootModel[list[NoteSearchResult]]):
    pass


class NoteGateway(Protocol):
    """What the client cache needs from the notes backend."""

    async def list_notes(
        self,
        filters: ListFilter,
        cursor: Cursor | None,
        limit: int,
    ) -> NoteListPage: ...

    async def get_note(self, note_id: str) -> NoteResponse | None: ...

    async def create_note(self, data: NoteCreate) -> NoteResponse: ...

    async def update_note(self, note_id: str, patch: dict[str, Any]) -> NoteResponse | None: ...

    async def delete_note(self, note_id: str) -> bool: ...

    async def search_notes(self, query: str, limit: int) -> list[NoteSearchResult]: ...

    async def aclose(self) -> None: ...


class NotesClient:
    """
    NoteGateway over HTTP.

    Usage:
        client = NotesClient("http://127.0.0.1:8000")
        page = await client.list_notes(ListFilter(), None, 50)
        await client.aclose()

    Pass http_client to reuse an existing httpx.AsyncClient (for example
    one built on httpx.ASGITransport in tests); it is closed by aclose().
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        *,
        api_prefix: str = DEFAULT_API_PREFIX,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if http_client is None:
            if base_url is None:
                raise ValueError("base_url is required when http_client is not given")
            http_client = httpx.AsyncClient(
                base_url=base_url.rstrip("/"),
                timeout=timeout,
                headers={"Accept": "application/json"},
            )
        self._http = http_client
        self._prefix = api_prefix.rstrip("/")

    async def aclose(self) -> None:
        if not self._http.is_closed:
            await self._http.aclose()

    # -------------------------------------------------------------------------
    # NoteGateway
    # -------------------------------------------------------------------------

    async def list_notes(
        self,
        filters: ListFilter,
        cursor: Cursor | None,
        limit: int,
    ) -> NoteListPage:
        params: dict[str, Any] = {"limit": limit}
        if cursor is not None:
            params["cursor"] = cursor.updated_at.isoformat()
            params["cursorId"] = cursor.id
        if filters.folder_id is not None:
            params["folderId"] = filters.folder_id
        if filters.tag_id is not None:
            params["tagId"] = filters.tag_id

        response = await self._request("GET", "/notes", params=params)
        return self._parse(NoteListPage, response)

    async def get_note(self, note_id: str) -> NoteResponse | None:
        response = await self._request("GET", f"/notes/{note_id}")
        if response.status_code == 404:
            return None
        return self._parse(NoteResponse, response)

    async def create_note(self, data: NoteCreate) -> NoteResponse:
        response = await self._request(
            "POST",
            "/notes",
            json=data.model_dump(mode="json", by_alias=True, exclude_unset=True),
        )
        return self._parse(NoteResponse, response)

    async def update_note(self, note_id: str, patch: dict[str, Any]) -> NoteResponse | None:
        """
        PATCH a note with the given fields.

        Raises:
            ValidationError: if the patch is empty or malformed; nothing is sent
        """
        body = parse_or_reject(NoteUpdate, patch)
        if isinstance(body, Rejected):
            raise ValidationError("Invalid note patch", details={"errors": body.errors})

        response = await self._request(
            "PATCH",
            f"/notes/{note_id}",
            json=body.value.model_dump(mode="json", by_alias=True, exclude_unset=True),
        )
        if response.status_code == 404:
            return None
        return self._parse(NoteResponse, response)

    async def delete_note(self, note_id: str) -> bool:
        response = await self._request("DELETE", f"/notes/{note_id}")
        if response.status_code == 404:
            return False
        return self._parse(DeleteResult, response).success

    async def search_notes(self, query: str, limit: int) -> list[NoteSearchResult]:
        response = await self._request(
            "GET",
            "/notes/search",
            params={"q": query, "limit": limit},
        )
        return self._parse(NoteSearchResults, response).root

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request; return the response if it is a success or a 404.

        Raises:
            TransientNetworkError: transport failure or 5xx
            ValidationError: 400
            ExternalServiceError: any other error status
        """
        url = f"{self._prefix}{path}"
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.TransportError as e:
            log_with_source(
                logger, "client", "warning", "API request failed",
                method=method, path=url, error=str(e),
            )
            raise TransientNetworkError(f"{method} {url} failed: {e}") from e

        log_with_source(
            logger, "client", "debug", "API response",
            method=method, path=url, status_code=response.status_code,
        )

        if response.is_success or response.status_code == 404:
            return response

        message = self._error_message(response)
        if response.status_code >= 500:
            raise TransientNetworkError(message)
        if response.status_code == 400:
            raise ValidationError(message)
        raise ExternalServiceError(message)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        fallback = f"{response.request.method} {response.request.url.path} returned {response.status_code}"
        try:
            envelope = parse_or_reject(ErrorResponse, response.json())
        except ValueError:
            return fallback
        if isinstance(envelope, Rejected):
            return fallback
        return envelope.value.error.message

    @staticmethod
    def _parse(schema: type[ModelT], response: httpx.Response) -> ModelT:
        try:
            payload = response.json()
        except ValueError as e:
            raise ExternalServiceError("Response body is not JSON") from e

        result = parse_or_reject(schema, payload)
        if isinstance(result, Rejected):
            log_with_source(
                logger, "client", "error", "Unexpected response payload",
                schema=schema.__name__, errors=result.errors,
            )
            raise ExternalServiceError(f"Unexpected {schema.__name__} payload: {result.message}")
        return result.value
