"""Custom exceptions for invoice import and query errors."""

from typing import Any, Dict, Optional


class InvoiceImportError(Exception):
    """Error that maps to a stable user-facing error payload."""

    code = "IMPORT_ERROR"
    default_status_code = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status_code
        self.details = details or {}


class SourceUnavailable(InvoiceImportError):
    """The row source could not produce rows (missing or unreadable file)."""

    code = "SOURCE_UNAVAILABLE"
    default_status_code = 400


class ValidationFailure(InvoiceImportError):
    """A required field is missing or cannot be coerced to its type."""

    code = "VALIDATION_FAILED"
    default_status_code = 422


class PersistenceFailure(InvoiceImportError):
    """A store operation failed (constraint violation, lost connection, ...)."""

    code = "PERSISTENCE_FAILED"
    default_status_code = 500
