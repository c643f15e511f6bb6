"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry the user-facing messaging used in HTTP responses.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    CODE_NOT_FOUND = "code_not_found"
    CODE_EXPIRED = "code_expired"
    FILE_NOT_FOUND = "file_not_found"
    RANGE_NOT_SATISFIABLE = "range_not_satisfiable"
    EMPTY_BATCH = "empty_batch"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    UNSUPPORTED_TYPE = "unsupported_type"
    STORAGE_FAILURE = "storage_failure"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.CODE_NOT_FOUND: {
        "title": "Code Not Found",
        "message": "No files are shared under this code.",
        "action": "Check the code for typos and try again.",
    },
    ErrorCategory.CODE_EXPIRED: {
        "title": "Code Expired",
        "message": "The files shared under this code are no longer available. Codes are valid for one hour.",
        "action": "Ask the sender to upload the files again.",
    },
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "The requested file is not part of this share or has been deleted.",
        "action": "Reload the file list for this code.",
    },
    ErrorCategory.RANGE_NOT_SATISFIABLE: {
        "title": "Range Not Satisfiable",
        "message": "The requested byte range lies outside the file.",
        "action": "Restart the download from the beginning.",
    },
    ErrorCategory.EMPTY_BATCH: {
        "title": "No Files Uploaded",
        "message": "The upload did not contain any files.",
        "action": "Select at least one file and try again.",
    },
    ErrorCategory.PAYLOAD_TOO_LARGE: {
        "title": "Upload Too Large",
        "message": "The upload exceeds the maximum allowed size.",
        "action": "Remove some files or upload smaller files.",
    },
    ErrorCategory.UNSUPPORTED_TYPE: {
        "title": "Unsupported File Type",
        "message": "One of the files has a type that is not accepted.",
        "action": "Remove the file or convert it to a supported format.",
    },
    ErrorCategory.STORAGE_FAILURE: {
        "title": "Storage Unavailable",
        "message": "The files could not be stored or read right now.",
        "action": "Please try again in a moment.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions can optionally wrap original errors for context.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class CodeNotFoundError(DomainError):
    """Raised when a code does not resolve to any registry entry."""
    pass


class CodeExpiredError(DomainError):
    """
    Raised when a code existed but its TTL has passed.

    Detection always performs the cleanup of the group before this is raised.
    """
    pass


class StoredFileNotFoundError(DomainError):
    """Raised when a stored file is unknown to its group or missing from the blob store."""
    pass


class RangeNotSatisfiableError(DomainError):
    """Raised when a requested byte range lies outside the file bounds."""

    def __init__(self, message: str, total_size: int):
        super().__init__(message)
        self.total_size = total_size


class EmptyBatchError(DomainError):
    """Raised when an upload batch contains no files."""
    pass


class PayloadTooLargeError(DomainError):
    """Raised when a file or the whole batch exceeds the configured ceiling."""
    pass


class UnsupportedTypeError(DomainError):
    """Raised when content filtering rejects a file's content type."""
    pass


class StorageFailureError(DomainError):
    """
    Raised when an underlying read or write fails.

    Callers may retry; the core never retries automatically.
    """
    pass


class CorruptedRecordError(StorageFailureError):
    """Raised when a stored registry row exists but cannot be decoded."""
    pass


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP responses.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code
