"""
Vitrine Media API - FastAPI Application Entry Point.

This module initializes the FastAPI application with CORS middleware,
registers the v1 API router, installs the upload error handler and
configures logging at startup.

Architecture Decisions:
- CORS restricted to the storefront front-ends (plus CLIENT_URL)
- Every UploadError becomes a 400 ``{"success": false, "message": ...}``
- Health check endpoint for container orchestration monitoring
- All API endpoints versioned under the /api/v1 prefix
"""

import logging
from datetime import UTC, datetime

import uvicorn

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vitrine_media import __version__
from vitrine_media.api.v1 import api_router
from vitrine_media.config import get_settings
from vitrine_media.utils.logger import setup_logging
from vitrine_media.utils.upload_errors import (
    UPLOAD_ERROR_STATUS,
    UploadError,
    classify_upload_error,
)


logger = logging.getLogger(__name__)

settings = get_settings()


# =============================================================================
# FastAPI Application Initialization
# =============================================================================

app = FastAPI(
    title="Vitrine Media API",
    version=__version__,
    description="Product image and video uploads for the storefront catalogue",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "Accept", "X-Request-ID"],
    expose_headers=["Content-Range", "X-Content-Range"],
)


# =============================================================================
# Startup Event Handler
# =============================================================================


@app.on_event("startup")
async def startup_event() -> None:
    """Configure logging and report whether uploads can be published."""
    setup_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        include_file_logging=settings.log_to_file,
        log_dir=settings.log_dir,
    )

    if not settings.is_cloudinary_configured:
        logger.warning(
            "Cloudinary credentials are not configured; upload endpoints will return 503"
        )

    logger.info(
        "Vitrine Media API started in %s mode on %s:%d",
        settings.app_env,
        settings.host,
        settings.port,
    )


@app.on_event("shutdown")
async def shutdown_event() -> None:
    logger.info("Vitrine Media API shutdown complete")


# =============================================================================
# Error Handlers
# =============================================================================


@app.exception_handler(UploadError)
async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
    """Return every rejected or failed upload as a uniform 400 body."""
    logger.info(
        "Upload error on %s (stage=%s): %s",
        request.url.path,
        exc.stage.value,
        exc.message,
    )
    return JSONResponse(status_code=UPLOAD_ERROR_STATUS, content=classify_upload_error(exc))


# =============================================================================
# Root and Health Endpoints
# =============================================================================


@app.get("/", tags=["root"])
async def root() -> dict:
    """API information and the list of available endpoints."""
    return {
        "name": "Vitrine Media API",
        "version": __version__,
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "health": "/health",
            "single_upload": "/api/v1/uploads/single",
            "multiple_upload": "/api/v1/uploads/multiple",
        },
    }


@app.get("/health", tags=["health"])
async def health_check() -> dict:
    """
    Liveness probe for container orchestration.

    Returns immediately without contacting the media store; ``media_store``
    only reports whether credentials are configured.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "vitrine-media",
        "media_store": "configured" if settings.is_cloudinary_configured else "not_configured",
    }


app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    uvicorn.run(
        "vitrine_media.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level,
    )
