"""
Data models for the Vitrine Media service.
"""

from vitrine_media.models.upload import (
    MediaKind,
    PublishedFile,
    PublishOutcome,
    PublishTarget,
    StagedFile,
    UploadErrorResponse,
    UploadResponse,
)


__all__ = [
    "MediaKind",
    "PublishOutcome",
    "PublishTarget",
    "PublishedFile",
    "StagedFile",
    "UploadErrorResponse",
    "UploadResponse",
]
