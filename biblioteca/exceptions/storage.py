# ruff: noqa: D107
"""Object storage and authentication collaborator exceptions."""

from typing import Any

from .base import BaseAppException


class StorageError(BaseAppException):
    """Exception raised when the object store rejects or fails a request."""

    def __init__(
        self,
        message: str = "Storage service error",
        upstream_status: int | None = None,
        details: dict[str, Any] | None = None,
        status_code: int = 502,
        error_code: str = "STORAGE_ERROR",
    ):
        self.upstream_status = upstream_status
        if details is None:
            details = {}
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(message, status_code=status_code, error_code=error_code, details=details)


class StorageNotFoundError(StorageError):
    """Exception raised when a stored object does not exist."""

    def __init__(
        self,
        message: str = "Object not found",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message,
            upstream_status=404,
            details=details,
            status_code=404,
            error_code="STORAGE_NOT_FOUND",
        )


class AuthError(BaseAppException):
    """Exception raised when the auth service rejects credentials or tokens."""

    def __init__(
        self,
        message: str = "Authentication failed",
        status_code: int = 401,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code=status_code, error_code="AUTH_ERROR", details=details)
