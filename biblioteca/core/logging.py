"""Logging setup for the API process."""

import logging

from biblioteca.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once, using the configured log level."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level or settings.log_level.value)
        return

    logging.basicConfig(
        level=level or settings.log_level.value,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
