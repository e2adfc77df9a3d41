"""Summary history store.

The history of one user is a single JSON array kept in the object store at
``{user_id}/__history/summary_history.json``. It is loaded once per session,
appended to in memory and rewritten whole after every new summary.
"""

import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

from biblioteca.exceptions.library import HistoryDecodeError, HistoryPersistError
from biblioteca.exceptions.storage import StorageError, StorageNotFoundError
from biblioteca.schemas.summary import ConversationEntry
from biblioteca.shared.storage import SupabaseStorage

logger = logging.getLogger(__name__)

HISTORY_FOLDER = "__history"
HISTORY_FILENAME = "summary_history.json"
HISTORY_CONTENT_TYPE = "application/json"


def history_path(user_id: str) -> str:
    return f"{user_id}/{HISTORY_FOLDER}/{HISTORY_FILENAME}"


def now_millis() -> datetime:
    """Current UTC time truncated to the millisecond precision we persist."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with milliseconds and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.astimezone()
    utc = value.astimezone(UTC)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(raw: Any) -> datetime | None:
    if not isinstance(raw, str):
        return None
    try:
        parsed = datetime.fromisoformat(raw.strip())
    except ValueError:
        return None
    # Naive timestamps are local time.
    return parsed.astimezone()


def entry_to_json(entry: ConversationEntry) -> dict[str, Any]:
    return {
        "timestamp": format_timestamp(entry.timestamp),
        "files": list(entry.files),
        "prompt": entry.prompt,
        "summary": entry.summary,
    }


def entry_from_json(data: dict[str, Any]) -> ConversationEntry | None:
    """Decode one stored entry, tolerating missing fields.

    Missing ``timestamp`` becomes now, missing ``files`` an empty list and
    missing ``prompt``/``summary`` empty strings. A ``prompt`` or ``summary``
    of the wrong type makes the entry malformed and it is dropped.
    """
    timestamp = parse_timestamp(data.get("timestamp")) or datetime.now(UTC).astimezone()

    raw_files = data.get("files")
    files = [name for name in raw_files if isinstance(name, str)] if isinstance(raw_files, list) else []

    prompt = data.get("prompt", "")
    summary = data.get("summary", "")
    if prompt is None:
        prompt = ""
    if summary is None:
        summary = ""
    if not isinstance(prompt, str) or not isinstance(summary, str):
        logger.warning("Dropping history entry with non-text prompt or summary")
        return None
    if "summary" not in data:
        logger.warning(f"History entry from {format_timestamp(timestamp)} has no summary")

    return ConversationEntry(timestamp=timestamp, files=tuple(files), prompt=prompt, summary=summary)


def encode_history(entries: Sequence[ConversationEntry]) -> bytes:
    payload = [entry_to_json(entry) for entry in entries]
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def decode_history(raw: bytes) -> list[ConversationEntry]:
    """Decode a stored history document.

    Raises:
        HistoryDecodeError: If the document is not a JSON array.
    """
    try:
        decoded = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HistoryDecodeError(f"The stored summary history could not be read: {str(e)}") from e

    if not isinstance(decoded, list):
        raise HistoryDecodeError("The stored summary history is not a list of entries")

    entries = []
    for item in decoded:
        if not isinstance(item, dict):
            continue
        entry = entry_from_json(item)
        if entry is not None:
            entries.append(entry)
    return entries


def recent_window(log: Sequence[ConversationEntry], limit: int) -> list[ConversationEntry]:
    """Return the last ``limit`` entries, oldest first."""
    if limit <= 0:
        return []
    if len(log) <= limit:
        return list(log)
    return list(log[len(log) - limit :])


def append_entry(log: Sequence[ConversationEntry], entry: ConversationEntry) -> list[ConversationEntry]:
    return [*log, entry]


class HistoryStore:
    """Loads and persists the summary history of users in one bucket."""

    def __init__(self, storage: SupabaseStorage):
        self.storage = storage

    async def load(self, user_id: str) -> list[ConversationEntry]:
        """Load the user's history; a missing document is an empty history.

        Raises:
            HistoryDecodeError: If the stored document exists but is invalid.
            StorageError: If the object store could not be reached.
        """
        try:
            raw = await self.storage.download(history_path(user_id))
        except StorageNotFoundError:
            logger.debug(f"No summary history stored yet for user {user_id}")
            return []

        entries = decode_history(raw)
        logger.info(f"Loaded {len(entries)} history entries for user {user_id}")
        return entries

    async def persist(self, user_id: str, log: Sequence[ConversationEntry]) -> bool:
        """Overwrite the stored history with ``log``.

        An empty log is never written, so a failed load cannot wipe what is
        already stored. Returns whether a write happened.

        Raises:
            HistoryPersistError: If the object store rejected the write.
        """
        if not log:
            return False

        try:
            await self.storage.upload(
                history_path(user_id),
                encode_history(log),
                content_type=HISTORY_CONTENT_TYPE,
                upsert=True,
            )
        except StorageError as e:
            logger.error(f"Failed to store summary history for user {user_id}: {e.message}")
            raise HistoryPersistError(f"The summary history could not be saved: {e.message}") from e
        return True
