"""Projection of storage listings to library files."""

from datetime import UTC, datetime
from typing import Any

from biblioteca.schemas.library import StoredFile
from biblioteca.shared.storage import SupabaseStorage

EPOCH = datetime.fromtimestamp(0, UTC)


def parse_created_at(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    return None


def to_stored_files(user_id: str, objects: list[dict[str, Any]]) -> list[StoredFile]:
    """Project a storage listing to files, newest first.

    Folder placeholders (entries without an object id) are skipped. Files
    without a creation date sort last.
    """
    files = [
        StoredFile(
            name=item["name"],
            full_path=f"{user_id}/{item['name']}",
            created_at=parse_created_at(item.get("created_at")),
        )
        for item in objects
        if item.get("name") and item.get("id") is not None
    ]
    files.sort(key=lambda file: file.created_at or EPOCH, reverse=True)
    return files


async def list_stored_files(storage: SupabaseStorage, user_id: str) -> list[StoredFile]:
    objects = await storage.list(user_id)
    return to_stored_files(user_id, objects)
