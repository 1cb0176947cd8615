"""Classified failures raised by the video ingestion flow."""

from __future__ import annotations

from typing import Any, Dict, Optional


class IngestionError(RuntimeError):
    """Base class; each subclass maps to one HTTP status and error code."""

    code = "ingestion_failed"
    status_code = 500
    retryable = False
    default_message = "Upload video failed"

    def __init__(self, message: Optional[str] = None, *, details: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
            "retryable": self.retryable,
        }


class Unauthenticated(IngestionError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Unauthorized"


class Misconfigured(IngestionError):
    code = "misconfigured"
    status_code = 500
    default_message = "Cloudinary credentials not found"


class MissingFile(IngestionError):
    code = "missing_file"
    status_code = 400
    default_message = "File not found"


class InvalidFileType(IngestionError):
    code = "invalid_file_type"
    status_code = 400
    default_message = "Invalid file type. Please upload a video file."


class FileTooLarge(IngestionError):
    code = "file_too_large"
    status_code = 400
    default_message = "File size too large. Maximum size is 1GB."


class InvalidField(IngestionError):
    code = "invalid_field"
    status_code = 400
    default_message = "Invalid upload form."


class ProviderTimeout(IngestionError):
    code = "provider_timeout"
    status_code = 408
    default_message = "Upload timed out. Please try again with a smaller file."


class ProviderFailure(IngestionError):
    code = "provider_failure"
    status_code = 500
    default_message = "Cloudinary upload failed"


class PersistenceUnreachable(IngestionError):
    code = "persistence_unreachable"
    status_code = 500
    retryable = True
    default_message = "Failed to save video to database"


class PersistenceRejected(IngestionError):
    code = "persistence_rejected"
    status_code = 500
    default_message = "Failed to save video to database"
