"""Error handling module for hubdrivers.

This module defines error codes, exception classes, and response models.
The hub's HTTP layer renders any DriverError through ``to_response()``.

Error Response Format:
{
    "error": {
        "code": "INVALID_PATH",
        "message": "Invalid Path"
    }
}

Usage:
    from hubdrivers.errors import InvalidPathError, StorageFailureError

    raise InvalidPathError()
    raise StorageFailureError("failed to store a/b in bucket hub", bucket="hub", key="a/b")
"""

from enum import Enum

from pydantic import BaseModel


class ErrorCode(str, Enum):
    """Error codes."""

    INVALID_PATH = "INVALID_PATH"
    STORAGE_FAILURE = "STORAGE_FAILURE"
    PROVISIONING_FAILED = "PROVISIONING_FAILED"


class ErrorDetail(BaseModel):
    """Error detail containing code and message."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Error response format."""

    error: ErrorDetail


class DriverError(Exception):
    """Base exception for storage drivers.

    Attributes:
        code: The error code from ErrorCode enum.
        message: Human-readable error message.
        status_code: HTTP status code the hub should return.
    """

    def __init__(self, code: ErrorCode, message: str, status_code: int) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to ErrorResponse model."""
        return ErrorResponse(
            error=ErrorDetail(code=self.code.value, message=self.message)
        )


class InvalidPathError(DriverError):
    """400 Bad Request - Path failed validation (contains traversal)."""

    def __init__(self, message: str = "Invalid Path") -> None:
        super().__init__(ErrorCode.INVALID_PATH, message, 400)


class StorageFailureError(DriverError):
    """503 Service Unavailable - Backend error while listing or writing.

    ``bucket`` and ``key`` identify the object for diagnosis. Messages carry
    backend diagnostic text only, never credential material.
    """

    def __init__(
        self,
        message: str = "Storage failure",
        bucket: str | None = None,
        key: str | None = None,
    ) -> None:
        self.bucket = bucket
        self.key = key
        super().__init__(ErrorCode.STORAGE_FAILURE, message, 503)


class ProvisioningError(DriverError):
    """500 Internal Server Error - Backing container could not be ensured."""

    def __init__(self, message: str = "Storage provisioning failed", bucket: str | None = None) -> None:
        self.bucket = bucket
        super().__init__(ErrorCode.PROVISIONING_FAILED, message, 500)
