"""Prompt assembly for library summaries."""

import logging
from collections.abc import Mapping, Sequence
from pathlib import PurePosixPath

from biblioteca.domains.summary.history import format_timestamp
from biblioteca.exceptions.storage import StorageError
from biblioteca.schemas.library import StoredFile
from biblioteca.schemas.summary import ConversationEntry
from biblioteca.shared.storage import SupabaseStorage

logger = logging.getLogger(__name__)

TEXT_EXTENSIONS = frozenset({".txt", ".md", ".csv", ".json"})

CONTINUATION_MARKER = "..."
HISTORY_SUMMARY_MAX_CHARS = 400
SNIPPET_MAX_CHARS = 4000
STORED_PROMPT_MAX_CHARS = 2000
FRAGMENT_SEPARATOR = "---"

HEADER_LINES = (
    "Genera un resumen ejecutivo en español de los archivos listados.",
    "Incluye los puntos principales y recomendaciones accionables.",
    "Archivos disponibles:",
)
HISTORY_HEADER = "Contexto de resúmenes previos:"
NAMES_ONLY_INSTRUCTION = (
    "No hay contenido textual disponible; crea un resumen a partir de los nombres y extensiones."
)
FRAGMENTS_HEADER = "Fragmentos de contenido de soporte:"


def trim_for_prompt(value: str, max_length: int = HISTORY_SUMMARY_MAX_CHARS) -> str:
    if len(value) <= max_length:
        return value
    return f"{value[:max_length]}{CONTINUATION_MARKER}"


def is_text_document(name: str) -> bool:
    return PurePosixPath(name).suffix.lower() in TEXT_EXTENSIONS


async def read_text_document(storage: SupabaseStorage, file: StoredFile) -> str | None:
    """Download a text document and decode it, replacing malformed bytes.

    Returns None for non-text documents and for documents that could not be
    downloaded.
    """
    if not is_text_document(file.name):
        return None
    try:
        raw = await storage.download(file.full_path)
    except StorageError as e:
        logger.warning(f"Could not read {file.full_path}: {e.message}")
        return None
    return raw.decode("utf-8", errors="replace")


async def collect_text_documents(
    storage: SupabaseStorage, files: Sequence[StoredFile]
) -> dict[str, str]:
    """Map document name to the first characters of its text content."""
    snippets: dict[str, str] = {}
    for file in files:
        if not is_text_document(file.name):
            continue
        content = await read_text_document(storage, file)
        if content is None:
            continue
        snippets[file.name] = content[:SNIPPET_MAX_CHARS]
    return snippets


def build_summary_prompt(
    file_names: Sequence[str],
    previous: Sequence[ConversationEntry],
    text_contents: Mapping[str, str],
) -> str:
    """Build the summarization prompt.

    Sections, in order: instructions, file names, prior summaries (if any),
    then either the content fragments or the names-only instruction.
    """
    lines = list(HEADER_LINES)
    lines.extend(f"- {name}" for name in file_names)

    if previous:
        lines.append(HISTORY_HEADER)
        for entry in previous:
            lines.append(f"- {format_timestamp(entry.timestamp)}: {trim_for_prompt(entry.summary)}")

    if not text_contents:
        lines.append(NAMES_ONLY_INSTRUCTION)
    else:
        lines.append(FRAGMENTS_HEADER)
        for name, snippet in text_contents.items():
            lines.append(f"Documento: {name}")
            lines.append(snippet[:SNIPPET_MAX_CHARS])
            lines.append(FRAGMENT_SEPARATOR)

    return "\n".join(lines) + "\n"


def prompt_for_storage(prompt: str) -> str:
    """Trim a prompt for the history document; the result, marker included, fits the limit."""
    if len(prompt) <= STORED_PROMPT_MAX_CHARS:
        return prompt
    return f"{prompt[: STORED_PROMPT_MAX_CHARS - len(CONTINUATION_MARKER)]}{CONTINUATION_MARKER}"
