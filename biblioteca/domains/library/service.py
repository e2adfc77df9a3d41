"""Library service layer: documents stored in the user's folder."""

import asyncio
import logging
import mimetypes
from collections import Counter
from datetime import UTC, datetime

from biblioteca.core.config import settings
from biblioteca.core.session import LibrarySession
from biblioteca.domains.library.listing import list_stored_files
from biblioteca.domains.library.naming import build_object_path
from biblioteca.domains.summary.prompt import is_text_document
from biblioteca.domains.summary.service import SummaryService
from biblioteca.exceptions.library import DocumentNotFoundError, InvalidUploadError
from biblioteca.exceptions.storage import StorageNotFoundError
from biblioteca.schemas.library import DocumentView, LibraryStats, RefreshResponse, StoredFile
from biblioteca.shared.storage import SupabaseStorage

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE


class LibraryService:
    """Service class for document operations in the user's library."""

    def __init__(self, storage: SupabaseStorage, summary_service: SummaryService | None = None):
        """Initialize library service with a storage client.

        Args:
            storage: Storage client bound to the user's access token.
            summary_service: Used by ``refresh`` to reload history.
        """
        self.storage = storage
        self.summary_service = summary_service

    async def list_files(self, session: LibrarySession) -> list[StoredFile]:
        """Reload the listing of the user's folder into the session."""
        session.files = await list_stored_files(self.storage, session.user_id)
        session.files_loaded = True
        logger.info(f"Listed {len(session.files)} documents for user {session.user_id}")
        return session.files

    async def upload_document(
        self,
        session: LibrarySession,
        filename: str,
        content: bytes | None,
    ) -> StoredFile:
        """Store a new document and refresh the listing.

        The content type always comes from the file extension.

        Raises:
            InvalidUploadError: If the file is empty, unreadable or too large.
        """
        if not filename or not filename.strip():
            raise InvalidUploadError("The selected file has no name")
        if not content:
            raise InvalidUploadError("The selected file could not be read")
        if len(content) > settings.max_file_size:
            raise InvalidUploadError(
                "The selected file is too large",
                details={"max_file_size": settings.max_file_size, "size": len(content)},
            )

        object_path = build_object_path(session.user_id, filename)
        content_type = guess_content_type(filename)

        await self.storage.upload(object_path, content, content_type=content_type, upsert=False)
        logger.info(f"Uploaded {filename!r} as {object_path}")

        await self.list_files(session)
        stored_name = object_path.split("/", 1)[1]
        for file in session.files:
            if file.name == stored_name:
                return file
        return StoredFile(name=stored_name, full_path=object_path, created_at=datetime.now(UTC))

    async def _find(self, session: LibrarySession, name: str) -> StoredFile:
        if not session.files_loaded:
            await self.list_files(session)
        for file in session.files:
            if file.name == name:
                return file
        raise DocumentNotFoundError(f"Document {name!r} not found")

    async def delete_document(self, session: LibrarySession, name: str) -> None:
        file = await self._find(session, name)
        try:
            await self.storage.remove([file.full_path])
        except StorageNotFoundError as e:
            raise DocumentNotFoundError(f"Document {name!r} not found") from e
        logger.info(f"Deleted {file.full_path}")
        await self.list_files(session)

    async def open_document(self, session: LibrarySession, name: str) -> DocumentView:
        """Open a document: text inline, anything else as a signed URL."""
        file = await self._find(session, name)

        if is_text_document(file.name):
            try:
                raw = await self.storage.download(file.full_path)
            except StorageNotFoundError as e:
                raise DocumentNotFoundError(f"Document {name!r} not found") from e
            content = raw.decode("utf-8", errors="replace")
            return DocumentView(name=file.name, kind="text", content=content)

        try:
            url = await self.storage.create_signed_url(file.full_path, settings.signed_url_ttl)
        except StorageNotFoundError as e:
            raise DocumentNotFoundError(f"Document {name!r} not found") from e
        return DocumentView(name=file.name, kind="link", url=url, expires_in=settings.signed_url_ttl)

    def stats(self, session: LibrarySession) -> LibraryStats:
        counts = Counter(file.extension_label for file in session.files)
        return LibraryStats(by_extension=dict(counts), total=len(session.files))

    async def refresh(self, session: LibrarySession) -> RefreshResponse:
        """Reload the listing and the summary history concurrently."""
        if self.summary_service is None:
            raise RuntimeError("refresh requires a summary service")
        files, history = await asyncio.gather(
            self.list_files(session),
            self.summary_service.load_history(session),
        )
        return RefreshResponse(files=files, history=history)
