from __future__ import annotations

from enum import Enum


class RewriterError(Exception):
    """Base class for errors raised by the rewriter."""


class ValidationError(RewriterError):
    """Raised when a batch or a reference upload is rejected before any work starts."""

    code = "validation_error"


class MissingRequiredReference(ValidationError):
    code = "missing_required_reference"


class DocumentCountOutOfRange(ValidationError):
    code = "document_count_out_of_range"


class UnsupportedFileType(ValidationError):
    code = "unsupported_file_type"

    def __init__(self, message: str, names: list[str]) -> None:
        super().__init__(message)
        self.names = names


class EmptyDocument(ValidationError):
    code = "empty_document"

    def __init__(self, message: str, names: list[str]) -> None:
        super().__init__(message)
        self.names = names


class BatchTooLarge(ValidationError):
    code = "batch_too_large"


class InvalidReferenceFile(ValidationError):
    code = "invalid_reference_file"


class MalformedRequest(ValidationError):
    code = "malformed_request"


class ConfigurationError(RewriterError):
    """Raised when the remote rewriting service is missing usable credentials."""


class StorageError(RewriterError):
    """Raised when reference slots cannot be loaded or saved."""


class ErrorCategory(str, Enum):
    OVERLOADED = "overloaded"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    CONNECTION_RESET = "connection_reset"
    OTHER = "other"


TRANSIENT_CATEGORIES = frozenset(
    {
        ErrorCategory.OVERLOADED,
        ErrorCategory.RATE_LIMITED,
        ErrorCategory.TIMEOUT,
        ErrorCategory.CONNECTION_RESET,
    }
)


class ServiceError(RewriterError):
    """Raised by remote service adapters with a structured failure category."""

    def __init__(self, category: ErrorCategory, message: str) -> None:
        super().__init__(message)
        self.category = category
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.category in TRANSIENT_CATEGORIES
