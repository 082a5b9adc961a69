"""
Base Schemas.

Error envelope shared by every endpoint, the camelCase wire model base,
and the typed parse-or-reject boundary used wherever untrusted data
(request bodies, server responses) enters typed code.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Annotated, Any, Generic, TypeVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from notecore.backend.core.utils import as_utc, utc_now

ModelT = TypeVar("ModelT", bound=BaseModel)

UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]
"""Datetime that always carries an explicit UTC offset once validated."""


class WireModel(BaseModel):
    """Base for API payloads: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ResponseMetadata(BaseModel):
    """Metadata included in error responses."""

    timestamp: UtcDatetime = Field(default_factory=utc_now)
    request_id: str | None = None


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str
    message: str
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Standard error response."""

    success: bool = False
    data: None = None
    error: ErrorDetail
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


# =============================================================================
# Parse-or-reject boundary
# =============================================================================


@dataclass(frozen=True)
class Parsed(Generic[ModelT]):
    """Successful parse carrying the typed value."""

    value: ModelT
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Rejected:
    """Failed parse carrying field-level reasons."""

    errors: list[dict[str, str]]
    ok: bool = field(default=False, init=False)

    @property
    def message(self) -> str:
        return "; ".join(f"{e['field']}: {e['message']}" for e in self.errors)


def parse_or_reject(schema: type[ModelT], raw: Any) -> Parsed[ModelT] | Rejected:
    """
    Validate untrusted data against a schema without raising.

    Usage:
        result = parse_or_reject(NoteResponse, response.json())
        if isinstance(result, Rejected):
            ...
        note = result.value
    """
    try:
        return Parsed(schema.model_validate(raw))
    except PydanticValidationError as exc:
        return Rejected(
            errors=[
                {
                    "field": ".".join(str(loc) for loc in err.get("loc", [])),
                    "message": err.get("msg", "Validation error"),
                    "type": err.get("type", "unknown"),
                }
                for err in exc.errors()
            ]
        )
