"""Error taxonomy for the upload pipeline.

Every failure carries a machine-readable ``kind`` so callers can branch on it,
and an HTTP status used by the exception handler registered in ``cdmi.main``.
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation_error"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    NO_VALID_FILES = "no_valid_files"
    NO_CONTENT = "no_content"
    ARCHIVE_CREATE_FAILED = "archive_create_failed"
    STORAGE_ERROR = "storage_error"
    MISSING_BLOB = "missing_blob"


class CdmiError(Exception):
    """Base class for all pipeline errors."""

    kind: ErrorKind = ErrorKind.STORAGE_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert error to the JSON body returned by the API."""
        return {
            "error": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(CdmiError):
    """Malformed or missing field."""

    kind = ErrorKind.VALIDATION
    status_code = 422


class ForbiddenError(CdmiError):
    """Blocked fingerprint or delete credential mismatch."""

    kind = ErrorKind.FORBIDDEN
    status_code = 403


class NotFoundError(CdmiError):
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class NoValidFilesError(CdmiError):
    """Files were submitted but none of them could be stored."""

    kind = ErrorKind.NO_VALID_FILES
    status_code = 404


class NoContentError(CdmiError):
    """Download requested for a row without stored files."""

    kind = ErrorKind.NO_CONTENT
    status_code = 404


class ArchiveCreateError(CdmiError):
    kind = ErrorKind.ARCHIVE_CREATE_FAILED
    status_code = 500


class StorageError(CdmiError):
    kind = ErrorKind.STORAGE_ERROR
    status_code = 500


class MissingBlobError(CdmiError):
    """A path referenced by a row is absent from the blob store."""

    kind = ErrorKind.MISSING_BLOB
    status_code = 404

    def __init__(self, storage_path: str):
        super().__init__(
            "File does not exist",
            details={"storage_path": storage_path},
        )
        self.storage_path = storage_path
