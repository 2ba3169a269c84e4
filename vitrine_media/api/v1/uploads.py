"""
FastAPI Upload Router for Vitrine Media

This module exposes the two upload endpoints used by the storefront back
office:
- POST /single   - One image or video in field ``file`` (max 5 MB)
- POST /multiple - Product media in fields ``images`` (max 10) and
                   ``videos`` (max 5), 50 MB per file, 15 files in total

The request body is streamed straight into the upload pipeline; FastAPI's
form parsing is bypassed so no file is spooled to disk. Admission and
publish errors are ``UploadError`` subclasses turned into
``{"success": false, "message": ...}`` 400 responses by the application
exception handler.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from vitrine_media.config import Settings, get_settings
from vitrine_media.core.media_store import CloudinaryMediaStore, MediaStoreConfigurationError
from vitrine_media.models.upload import PublishedFile, UploadErrorResponse, UploadResponse
from vitrine_media.services.media_publisher import MediaPublisher
from vitrine_media.services.upload_service import UploadService
from vitrine_media.utils.upload_errors import UPLOAD_ERROR_STATUS


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "x-request-id"


router = APIRouter(
    tags=["uploads"],
    responses={
        400: {"model": UploadErrorResponse, "description": "Upload rejected"},
        503: {"description": "Media storage is not configured"},
    },
)


# ============================================================================
# Dependency Injection Functions
# ============================================================================


def get_upload_service(settings: Settings = Depends(get_settings)) -> UploadService:
    """
    Dependency injection for UploadService.

    Builds the Cloudinary store from settings and wires it into a
    MediaPublisher.

    Raises:
        HTTPException: 503 if Cloudinary credentials are not configured.
    """
    try:
        store = CloudinaryMediaStore.from_settings(settings)
    except MediaStoreConfigurationError as e:
        logger.error("Upload requested but media storage is unavailable: %s", e.message)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"success": False, "message": "Media storage is not configured"},
        ) from e

    publisher = MediaPublisher(store, root_folder=settings.media_root_folder)
    return UploadService(publisher, settings=settings)


def _request_id(request: Request) -> str:
    return request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex


# ============================================================================
# Upload Endpoints
# ============================================================================


@router.post(
    "/single",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a single image or video",
    description="Multipart upload of one file in field 'file' (JPEG, JPG, PNG, WEBP, "
    "MP4, MOV, AVI, WEBM), at most 5 MB.",
)
async def upload_single(
    request: Request,
    upload_service: UploadService = Depends(get_upload_service),
) -> UploadResponse:
    """
    Upload one file and publish it to the media store.

    Returns:
        UploadResponse: The published file with its delivery URL.

    Raises:
        UploadError: Rejected or failed upload (400 via exception handler).
    """
    outcome = await upload_service.handle_single_upload(
        request.stream(),
        request.headers.get("content-type"),
        request_id=_request_id(request),
    )
    return UploadResponse(
        success=True,
        message="File uploaded successfully",
        files=[PublishedFile.from_outcome(outcome)],
    )


@router.post(
    "/multiple",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload product images and videos",
    description="Multipart upload with up to 10 files in 'images' and 5 in 'videos', "
    "50 MB per file, 15 files in total.",
    responses={
        400: {
            "model": UploadResponse,
            "description": "Upload rejected, or at least one file failed to publish",
        },
    },
)
async def upload_multiple(
    request: Request,
    upload_service: UploadService = Depends(get_upload_service),
) -> UploadResponse | JSONResponse:
    """
    Upload a batch of product media.

    Every admitted file is published independently. When all succeed the
    response is 201. When any fail the response is 400 and still lists each
    file's outcome, so successfully published files are not lost.
    """
    outcomes = await upload_service.handle_multiple_upload(
        request.stream(),
        request.headers.get("content-type"),
        request_id=_request_id(request),
    )

    files = [PublishedFile.from_outcome(outcome) for outcome in outcomes]
    failed = [published for published in files if not published.success]

    if not failed:
        return UploadResponse(
            success=True,
            message=f"{len(files)} file(s) uploaded successfully",
            files=files,
        )

    body = UploadResponse(
        success=False,
        message=f"{len(failed)} of {len(files)} file(s) failed to upload: {failed[0].error}",
        files=files,
    )
    return JSONResponse(status_code=UPLOAD_ERROR_STATUS, content=body.model_dump(mode="json"))
