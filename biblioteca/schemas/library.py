"""Library schemas for stored documents."""

from __future__ import annotations

from datetime import datetime
from pathlib import PurePosixPath
from typing import Literal

from pydantic import ConfigDict, Field, computed_field

from .base import BaseSchema
from .summary import HistoryView

NO_EXTENSION_LABEL = "SIN EXTENSION"
UNKNOWN_DATE_LABEL = "fecha desconocida"


def format_local(value: datetime) -> str:
    """Format a timestamp as local ``YYYY-MM-DD HH:MM``."""
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


class StoredFile(BaseSchema):
    """Read-only projection of an object listed from the user's folder."""

    model_config = ConfigDict(frozen=True)

    name: str
    full_path: str
    created_at: datetime | None = None

    @computed_field
    @property
    def extension(self) -> str:
        return PurePosixPath(self.name).suffix.lower()

    @computed_field
    @property
    def extension_label(self) -> str:
        ext = PurePosixPath(self.name).suffix.lstrip(".").upper()
        return ext or NO_EXTENSION_LABEL

    @computed_field
    @property
    def created_at_label(self) -> str:
        if self.created_at is None:
            return UNKNOWN_DATE_LABEL
        return format_local(self.created_at)


class FileListResponse(BaseSchema):
    """Schema for a library listing."""

    files: list[StoredFile]
    total: int


class DocumentView(BaseSchema):
    """Schema for opening a document.

    Text documents carry their content inline; anything else is handed out
    as a short-lived signed URL.
    """

    name: str
    kind: Literal["text", "link"]
    content: str | None = None
    url: str | None = None
    expires_in: int | None = Field(None, description="Signed URL lifetime in seconds")


class LibraryStats(BaseSchema):
    """Per-extension breakdown of the library."""

    by_extension: dict[str, int]
    total: int


class RefreshResponse(BaseSchema):
    """Result of refreshing listing and history together."""

    files: list[StoredFile]
    history: HistoryView
