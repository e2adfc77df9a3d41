"""Library API controller with FastAPI endpoints."""

import logging

from fastapi import APIRouter, Depends, File, Path, UploadFile, status

from biblioteca.core.dependencies import get_current_session, get_library_service, validate_token
from biblioteca.core.session import LibrarySession
from biblioteca.domains.library.service import LibraryService
from biblioteca.exceptions.library import InvalidUploadError
from biblioteca.schemas.base import ResponseSchema
from biblioteca.schemas.library import FileListResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/library",
    tags=["library"],
    dependencies=[Depends(validate_token)],  # Global token validation for all routes
)


@router.get("/files", response_model=ResponseSchema)
async def list_files(
    session: LibrarySession = Depends(get_current_session),
    service: LibraryService = Depends(get_library_service),
):
    """List the documents in the user's library, newest first."""
    files = await service.list_files(session)
    return ResponseSchema(
        status="success",
        message="Files retrieved successfully",
        data=FileListResponse(files=files, total=len(files)).model_dump(mode="json"),
    )


@router.post("/files", response_model=ResponseSchema, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: UploadFile = File(...),
    session: LibrarySession = Depends(get_current_session),
    service: LibraryService = Depends(get_library_service),
):
    """Upload a document to the user's library."""
    try:
        content = await file.read()
    except OSError as e:
        raise InvalidUploadError("The selected file could not be read") from e

    stored = await service.upload_document(
        session,
        filename=file.filename or "",
        content=content,
    )
    return ResponseSchema(
        status="success",
        message=f'File "{file.filename}" saved',
        data=stored.model_dump(mode="json"),
    )


@router.get("/files/{name}", response_model=ResponseSchema)
async def open_file(
    name: str = Path(..., min_length=1),
    session: LibrarySession = Depends(get_current_session),
    service: LibraryService = Depends(get_library_service),
):
    """Open a document: text content inline, other files as a signed URL."""
    document = await service.open_document(session, name)
    return ResponseSchema(
        status="success",
        message="Document opened",
        data=document.model_dump(mode="json"),
    )


@router.delete("/files/{name}", response_model=ResponseSchema)
async def delete_file(
    name: str = Path(..., min_length=1),
    session: LibrarySession = Depends(get_current_session),
    service: LibraryService = Depends(get_library_service),
):
    """Delete a document from the user's library."""
    await service.delete_document(session, name)
    return ResponseSchema(status="success", message=f'File "{name}" deleted', data=None)


@router.get("/stats", response_model=ResponseSchema)
async def library_stats(
    session: LibrarySession = Depends(get_current_session),
    service: LibraryService = Depends(get_library_service),
):
    """Breakdown of the library by file type."""
    if not session.files_loaded:
        await service.list_files(session)
    return ResponseSchema(
        status="success",
        message="Library statistics retrieved successfully",
        data=service.stats(session).model_dump(),
    )


@router.post("/refresh", response_model=ResponseSchema)
async def refresh_library(
    session: LibrarySession = Depends(get_current_session),
    service: LibraryService = Depends(get_library_service),
):
    """Reload the file listing and the summary history together."""
    result = await service.refresh(session)
    return ResponseSchema(
        status="success",
        message=result.history.notice or "Library refreshed",
        data=result.model_dump(mode="json"),
    )
