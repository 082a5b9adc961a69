# Pydantic schemas package
from notecore.backend.schemas.base import (
    ErrorDetail,
    ErrorResponse,
    Parsed,
    Rejected,
    ResponseMetadata,
    parse_or_reject,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "Parsed",
    "Rejected",
    "ResponseMetadata",
    "parse_or_reject",
]
