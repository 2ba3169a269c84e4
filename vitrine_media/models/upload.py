"""
Upload models for the Vitrine Media service.

This module defines the in-memory representation of an admitted file
(StagedFile), the remote destination descriptor (PublishTarget), the result
of one publish attempt (PublishOutcome) and the Pydantic response models
returned by the upload endpoints.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from vitrine_media.utils.upload_errors import PublishError


# =============================================================================
# ENUMS
# =============================================================================


class MediaKind(str, Enum):
    """
    Kind of media accepted by the service.

    The value doubles as the remote store's resource type.
    """

    IMAGE = "image"
    VIDEO = "video"


# =============================================================================
# PIPELINE MODELS
# =============================================================================


@dataclass
class StagedFile:
    """
    An admitted file held entirely in memory.

    The buffer belongs to the request that produced it. It is released once
    the publish attempt for the file resolves, whatever the outcome, and is
    never written to local disk.
    """

    field_name: str
    filename: str
    content_type: str
    kind: MediaKind
    buffer: bytes = field(repr=False)
    size: int = 0
    released: bool = False

    def __post_init__(self) -> None:
        self.size = len(self.buffer)

    def release(self) -> None:
        """Drop the payload so it can be reclaimed. Safe to call twice."""
        self.buffer = b""
        self.released = True


@dataclass(frozen=True)
class PublishTarget:
    """Destination folder, resource kind and upload transformations."""

    folder: str
    resource_kind: MediaKind
    transformation: tuple[dict[str, Any], ...]

    def transformation_list(self) -> list[dict[str, Any]]:
        """Return a fresh mutable copy of the transformation directives."""
        return [dict(step) for step in self.transformation]


@dataclass
class PublishOutcome:
    """Result of publishing one staged file: the remote descriptor or an error."""

    field_name: str
    filename: str
    content_type: str
    size: int
    target: PublishTarget
    asset: dict[str, Any] | None = None
    error: PublishError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


# =============================================================================
# RESPONSE MODELS
# =============================================================================


class PublishedFile(BaseModel):
    """Per-file entry of an upload response."""

    field_name: str = Field(..., description="Multipart field the file arrived in")
    filename: str = Field(..., description="Original filename")
    content_type: str = Field(..., description="Declared content type")
    size: int = Field(..., description="File size in bytes")
    folder: str = Field(..., description="Remote folder the file was published to")
    success: bool = Field(..., description="Whether the publish call succeeded")
    url: str | None = Field(default=None, description="Delivery URL of the published asset")
    public_id: str | None = Field(default=None, description="Remote identifier of the asset")
    asset: dict[str, Any] | None = Field(
        default=None, description="Descriptor returned by the media store, unchanged"
    )
    error: str | None = Field(default=None, description="Remote store error message")

    @classmethod
    def from_outcome(cls, outcome: PublishOutcome) -> "PublishedFile":
        asset = outcome.asset or {}
        return cls(
            field_name=outcome.field_name,
            filename=outcome.filename,
            content_type=outcome.content_type,
            size=outcome.size,
            folder=outcome.target.folder,
            success=outcome.success,
            url=asset.get("secure_url") or asset.get("url"),
            public_id=asset.get("public_id"),
            asset=outcome.asset,
            error=outcome.error.message if outcome.error else None,
        )


class UploadResponse(BaseModel):
    """Response body of the upload endpoints."""

    success: bool = Field(..., description="True when every file was published")
    message: str = Field(..., description="Human-readable summary")
    files: list[PublishedFile] = Field(default_factory=list)


class UploadErrorResponse(BaseModel):
    """Uniform error body for rejected uploads."""

    success: bool = Field(default=False)
    message: str = Field(..., description="Reason the upload was rejected")
