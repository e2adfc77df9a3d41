"""Storage-safe document names."""

import re
import time
import uuid

_UNSAFE_RUN = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_file_name(original: str) -> str:
    """Replace each run of whitespace or characters outside ``[A-Za-z0-9._-]`` with ``_``.

    Case and extension are preserved.

    >>> sanitize_file_name("My Report (final).TXT")
    'My_Report_final_.TXT'
    """
    return _UNSAFE_RUN.sub("_", original)


def build_object_path(
    user_id: str,
    original_name: str,
    now_ms: int | None = None,
    unique: str | None = None,
) -> str:
    """Object key for an upload: ``{user_id}/{epoch_millis}_{unique}_{sanitized}``."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    if unique is None:
        unique = uuid.uuid4().hex[:8]
    return f"{user_id}/{now_ms}_{unique}_{sanitize_file_name(original_name)}"
