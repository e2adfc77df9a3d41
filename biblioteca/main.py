"""Biblioteca Inteligente API - Main Application Module.

This module initializes the FastAPI application with proper configuration,
middleware, routing, and lifecycle management for the document library and
its AI summaries.
"""

import logging
import os
import sys
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

# Add the project root to Python path if running directly
if __name__ == "__main__":
    project_root = Path(__file__).parent.parent
    sys.path.insert(0, str(project_root))

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from biblioteca.core.config import ConfigValidator, get_config_summary, settings
from biblioteca.core.logging import configure_logging
from biblioteca.core.session import sessions

logger = logging.getLogger(__name__)

SKIP_CONFIG_CHECK_ENV = "BIBLIOTECA_SKIP_CONFIG_CHECK"


def _utcnow() -> str:
    return datetime.now(UTC).isoformat()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Manage application lifecycle events."""
    configure_logging()
    logger.info(f"Starting {settings.app_name} ({settings.environment.value})")

    if settings.is_testing or os.getenv(SKIP_CONFIG_CHECK_ENV):
        logger.info("Skipping required settings check")
    else:
        ConfigValidator.validate_required_settings()

    if not settings.has_ai_enabled:
        logger.warning("GEMINI_API_KEY is not set; summaries are disabled")

    yield

    logger.info(f"Shutting down {settings.app_name}, closing {len(sessions)} session(s)")
    sessions.clear()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Document library with AI-generated executive summaries",
        version=settings.version,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Add middleware
    setup_middleware(app)

    # Add exception handlers
    setup_exception_handlers(app)

    # Include routers
    setup_routers(app)

    return app


def setup_middleware(app: FastAPI):
    """Configure application middleware."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def setup_exception_handlers(app: FastAPI):
    """Configure global exception handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Handle custom exceptions that have structured detail
        if isinstance(exc.detail, dict) and "message" in exc.detail:
            message = exc.detail["message"]
            error_code = exc.detail.get("error_code", "HTTP_ERROR")
            details = exc.detail.get("details")
        else:
            message = str(exc.detail) if exc.detail else "An error occurred"
            error_code = "HTTP_ERROR"
            details = None

        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {message}")

        return JSONResponse(
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
            content={
                "status": "error",
                "message": message,
                "error_code": error_code,
                "details": details,
                "timestamp": _utcnow(),
                "request_id": getattr(request.state, "request_id", None),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Convert errors to JSON-serializable format
        errors = []
        for error in exc.errors():
            error_dict = {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "Validation error")),
                "type": error.get("type", "value_error"),
            }
            if "input" in error:
                error_dict["input"] = str(error["input"])
            errors.append(error_dict)

        return JSONResponse(
            status_code=422,
            content={
                "status": "error",
                "message": "Validation error",
                "error_code": "VALIDATION_ERROR",
                "details": errors,
                "timestamp": _utcnow(),
                "request_id": getattr(request.state, "request_id", None),
            },
        )


def setup_routers(app: FastAPI):
    """Configure application routers."""
    from biblioteca.domains.auth.controller import router as auth_router
    from biblioteca.domains.library.controller import router as library_router
    from biblioteca.domains.summary.controller import router as summary_router

    @app.get("/health")
    async def health_check():
        """Report which collaborators are configured."""
        config = get_config_summary()
        features = config["features"]
        storage_status = "configured" if features["storage_configured"] else "not_configured"
        ai_status = "configured" if features["ai_enabled"] and config["model"] else "not_configured"

        return {
            "status": "healthy" if features["storage_configured"] else "degraded",
            "version": config["version"],
            "environment": config["environment"],
            "timestamp": _utcnow(),
            "services": {
                "storage": storage_status,
                "ai_service": ai_status,
            },
            "config": config,
            "active_sessions": len(sessions),
        }

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.version,
            "description": "Document library with AI-generated executive summaries",
            "docs_url": "/docs" if settings.is_development else None,
        }

    app.include_router(auth_router)
    app.include_router(library_router)
    app.include_router(summary_router)


# Create the application instance
app = create_app()


def main():
    """Entry point for running the application directly."""
    import uvicorn

    uvicorn.run(
        "biblioteca.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    main()
