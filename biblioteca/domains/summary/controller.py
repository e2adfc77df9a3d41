"""Summary API controller with FastAPI endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from biblioteca.core.dependencies import get_current_session, get_summary_service, validate_token
from biblioteca.core.session import LibrarySession
from biblioteca.domains.summary.service import SummaryService
from biblioteca.exceptions.ai import (
    AIConfigurationError,
    AIContentFilterError,
    AIQuotaExceededError,
    AIRateLimitError,
    AIServiceError,
    AITimeoutError,
)
from biblioteca.schemas.base import ResponseSchema
from biblioteca.schemas.summary import AIErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/summary",
    tags=["summary"],
    dependencies=[Depends(validate_token)],  # Global token validation for all routes
)


@router.post("", response_model=ResponseSchema, status_code=status.HTTP_201_CREATED)
async def generate_summary(
    session: LibrarySession = Depends(get_current_session),
    service: SummaryService = Depends(get_summary_service),
):
    """Generate an executive summary of the user's documents."""
    try:
        result = await service.generate_summary(session)
    except AIServiceError as e:
        return _handle_ai_service_error(e)

    return ResponseSchema(
        status="success",
        message=result.notice or "Summary generated successfully",
        data=result.model_dump(mode="json"),
    )


@router.get("", response_model=ResponseSchema)
async def get_last_summary(session: LibrarySession = Depends(get_current_session)):
    """Return the last summary generated in this session, if any."""
    return ResponseSchema(
        status="success",
        message="No summary generated yet" if session.summary is None else "Summary retrieved",
        data={"summary": session.summary},
    )


@router.get("/history", response_model=ResponseSchema)
async def get_history(
    reload: bool = False,
    session: LibrarySession = Depends(get_current_session),
    service: SummaryService = Depends(get_summary_service),
):
    """Recent summaries, newest first."""
    if reload or not session.history_loaded:
        history = await service.load_history(session)
    else:
        history = service.history_view(session)

    return ResponseSchema(
        status="success",
        message=history.notice or "History retrieved successfully",
        data=history.model_dump(mode="json"),
    )


def _handle_ai_service_error(error: AIServiceError) -> JSONResponse:
    """Handle AI service errors with appropriate HTTP status codes."""
    suggestions = ["Try again later"]
    retry_after = None
    headers = None

    if isinstance(error, AIConfigurationError):
        logger.error(f"AI configuration error: {str(error)}")
        message = "AI service is not properly configured"
        suggestions = ["Set GEMINI_API_KEY and GEMINI_MODEL", "Contact administrator"]
    elif isinstance(error, AIRateLimitError):
        logger.warning(f"AI rate limit exceeded: {str(error)}")
        message = "Rate limit exceeded"
        retry_after = error.details.get("retry_after", 60)
        headers = {"Retry-After": str(retry_after)}
        suggestions = ["Wait before making another request"]
    elif isinstance(error, AIQuotaExceededError):
        logger.warning(f"AI quota exceeded: {str(error)}")
        message = "AI service quota exceeded"
    elif isinstance(error, AITimeoutError):
        logger.error(f"AI request timeout: {str(error)}")
        message = "AI request timed out"
        suggestions = ["Try again", "Check network connectivity"]
    elif isinstance(error, AIContentFilterError):
        logger.warning(f"AI content filtered: {str(error)}")
        message = "Content was blocked by AI safety filters"
        suggestions = ["Review the documents in the library"]
    else:
        logger.error(f"AI service error: {str(error)}")
        message = "AI service encountered an error"
        suggestions = ["Try again later", "Contact support if problem persists"]

    return JSONResponse(
        status_code=error.status_code,
        headers=headers,
        content=ResponseSchema(
            status="error",
            message=message,
            data=AIErrorResponse(
                error_code=error.error_code,
                error_message=str(error),
                retry_after=retry_after,
                suggestions=suggestions,
            ).model_dump(),
        ).model_dump(),
    )
