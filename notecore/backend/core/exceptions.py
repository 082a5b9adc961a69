"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.

Repository and service code never raises NotFoundError: a missing note is
reported as ``None``/``False`` and translated to 404 by the API layer.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised at the API boundary when a resource cannot be found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class ExternalServiceError(ApplicationError):
    """Raised when a remote call returns something we cannot use."""

    def __init__(self, message: str = "External service error") -> None:
        super().__init__(message, code="SYS_EXTERNAL_SERVICE_ERROR")


class TransientNetworkError(ApplicationError):
    """Raised by the client when a request fails in a way worth retrying."""

    def __init__(self, message: str = "Network request failed") -> None:
        super().__init__(message, code="SYS_TRANSIENT_NETWORK_ERROR")


class DatabaseError(ApplicationError):
    """Raised when a database operation fails."""

    def __init__(self, message: str = "Database error") -> None:
        super().__init__(message, code="SYS_DATABASE_ERROR")
