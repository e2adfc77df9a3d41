"""Summary and history schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, Field, computed_field

from .base import BaseSchema

PREVIEW_LENGTH = 160


class ConversationEntry(BaseSchema):
    """One completed summarization event.

    Entries are immutable; ``files`` is a snapshot of the library at the time
    the summary was produced.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    files: tuple[str, ...] = ()
    prompt: str = ""
    summary: str = ""

    @computed_field
    @property
    def formatted_timestamp(self) -> str:
        return self.timestamp.astimezone().strftime("%Y-%m-%d %H:%M")

    @computed_field
    @property
    def preview_summary(self) -> str:
        if len(self.summary) <= PREVIEW_LENGTH:
            return self.summary
        return f"{self.summary[:PREVIEW_LENGTH]}..."


class HistoryView(BaseSchema):
    """Display window of the summary history, newest first."""

    entries: list[ConversationEntry]
    total: int = Field(..., description="Number of entries in the full history")
    notice: str | None = Field(None, description="User-facing notice when history could not be read")


class SummaryResult(BaseSchema):
    """Schema for a generated summary."""

    summary: str
    entry: ConversationEntry
    model: str
    history_saved: bool = True
    notice: str | None = None


class AIErrorResponse(BaseSchema):
    """Schema for AI service errors."""

    error_code: str
    error_message: str
    retry_after: int | None = Field(None, description="Seconds to wait before retrying")
    suggestions: list[str] = []
