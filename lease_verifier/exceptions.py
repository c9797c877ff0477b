"""
Custom exception hierarchy for lease verification.

Each exception type maps to one failure kind of the pipeline. Every kind also
belongs to a user-facing category so callers can tell "your document could not
be read" apart from "the verification service is unavailable".
"""

from __future__ import annotations

from enum import Enum


class ErrorCategory(str, Enum):
    """What the end user is told about a failed request."""

    INVALID_REQUEST = "invalid_request"
    DOCUMENT_UNREADABLE = "document_unreadable"
    SERVICE_UNAVAILABLE = "service_unavailable"


USER_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.INVALID_REQUEST: (
        "Both the owner name and the occupant name are required."
    ),
    ErrorCategory.DOCUMENT_UNREADABLE: (
        "Your document could not be read. Upload a PDF or Word document."
    ),
    ErrorCategory.SERVICE_UNAVAILABLE: (
        "The verification service is unavailable. Please try again later."
    ),
}

VERIFICATION_FAILED_MESSAGE = "Your document did not pass verification."
VERIFICATION_PASSED_MESSAGE = "Your document passed verification."


class LeaseVerificationError(Exception):
    """Base exception for all lease verification failures."""

    category: ErrorCategory = ErrorCategory.SERVICE_UNAVAILABLE
    http_status: int = 500

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.details = details or {}
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return USER_MESSAGES[self.category]


class InvalidRequest(LeaseVerificationError):
    """A claimed name is missing or blank."""

    category = ErrorCategory.INVALID_REQUEST
    http_status = 422

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("INVALID_REQUEST", message, details)


class UnsupportedMediaType(LeaseVerificationError):
    """The declared media type is not PDF or a Word document."""

    category = ErrorCategory.DOCUMENT_UNREADABLE
    http_status = 415

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("UNSUPPORTED_MEDIA_TYPE", message, details)


class ExtractionFailed(LeaseVerificationError):
    """A document of a supported type could not be parsed."""

    category = ErrorCategory.DOCUMENT_UNREADABLE
    http_status = 422

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("EXTRACTION_FAILED", message, details)


class StorageUnavailable(LeaseVerificationError):
    """The transient document store could not be written or cleaned."""

    category = ErrorCategory.DOCUMENT_UNREADABLE
    http_status = 503

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("STORAGE_UNAVAILABLE", message, details)


class TransportError(LeaseVerificationError):
    """The understanding service could not be reached (connection, DNS, timeout)."""

    category = ErrorCategory.SERVICE_UNAVAILABLE
    http_status = 503

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("TRANSPORT_ERROR", message, details)


class ServiceError(LeaseVerificationError):
    """The understanding service answered with a non-success status."""

    category = ErrorCategory.SERVICE_UNAVAILABLE
    http_status = 502

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("SERVICE_ERROR", message, details)


class MalformedAssessment(LeaseVerificationError):
    """The service reply did not contain a well-formed assessment record."""

    category = ErrorCategory.SERVICE_UNAVAILABLE
    http_status = 502

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("MALFORMED_ASSESSMENT", message, details)
