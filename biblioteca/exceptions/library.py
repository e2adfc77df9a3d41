# ruff: noqa: D107
"""Library and summary history exceptions."""

from typing import Any

from .base import BaseAppException, NotFoundError, ValidationError


class DocumentNotFoundError(NotFoundError):
    """Exception raised when a document is not in the user's library."""

    def __init__(
        self,
        message: str = "Document not found",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)


class InvalidUploadError(ValidationError):
    """Exception raised when an uploaded file cannot be accepted."""

    def __init__(
        self,
        message: str = "The selected file could not be read",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)


class NoDocumentsError(BaseAppException):
    """Exception raised when a summary is requested for an empty library."""

    def __init__(
        self,
        message: str = "There are no documents to summarize yet",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code=400, error_code="NO_DOCUMENTS", details=details)


class SummaryInProgressError(BaseAppException):
    """Exception raised when a summary is requested while another is running."""

    def __init__(
        self,
        message: str = "A summary is already being generated",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code=409, error_code="SUMMARY_IN_PROGRESS", details=details)


class HistoryDecodeError(BaseAppException):
    """Exception raised when the stored history document is not valid."""

    def __init__(
        self,
        message: str = "The stored summary history could not be read",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code=500, error_code="HISTORY_INVALID", details=details)


class HistoryPersistError(BaseAppException):
    """Exception raised when the summary history could not be saved."""

    def __init__(
        self,
        message: str = "The summary history could not be saved",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code=502, error_code="HISTORY_NOT_SAVED", details=details)
