"""
Media type classification for uploaded files.

Decides from the declared content type alone whether a file is an accepted
image or video. The decision is a pure function of its input: no content
sniffing, no hidden state.

Accepted formats:
- Images: image/jpeg, image/jpg, image/png, image/webp
- Videos: video/mp4, video/mov, video/avi, video/webm

Matching is exact on the declared string. An ``image/*`` or ``video/*`` type
outside the lists gets a format-specific message; anything else gets the
generic "images and videos only" message.
"""

from vitrine_media.models.upload import MediaKind
from vitrine_media.utils.upload_errors import ClassificationError


# =============================================================================
# CONSTANTS - Accepted Content Types
# =============================================================================

IMAGE_PREFIX: str = "image/"
VIDEO_PREFIX: str = "video/"

ALLOWED_IMAGE_CONTENT_TYPES: tuple[str, ...] = (
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
)

ALLOWED_VIDEO_CONTENT_TYPES: tuple[str, ...] = (
    "video/mp4",
    "video/mov",
    "video/avi",
    "video/webm",
)

UNSUPPORTED_IMAGE_MESSAGE: str = "Unsupported image format (JPEG, JPG, PNG, WEBP)"
UNSUPPORTED_VIDEO_MESSAGE: str = "Unsupported video format (MP4, MOV, AVI, WEBM)"
UNSUPPORTED_MEDIA_MESSAGE: str = "Only images and videos are allowed"


# =============================================================================
# CLASSIFICATION
# =============================================================================


def classify_media_type(content_type: str | None) -> tuple[bool, MediaKind | None, str | None]:
    """
    Classify a declared content type.

    Args:
        content_type: The Content-Type declared for the file part.

    Returns:
        Tuple of (is_accepted, kind, reason):
        - is_accepted: True if the type is a supported image or video format
        - kind: MediaKind.IMAGE or MediaKind.VIDEO when accepted, else None
        - reason: Rejection message, or None when accepted

    Example:
        >>> classify_media_type("image/png")
        (True, <MediaKind.IMAGE: 'image'>, None)
        >>> classify_media_type("image/gif")
        (False, None, 'Unsupported image format (JPEG, JPG, PNG, WEBP)')
        >>> classify_media_type("application/pdf")
        (False, None, 'Only images and videos are allowed')
    """
    if not content_type:
        return False, None, UNSUPPORTED_MEDIA_MESSAGE

    if content_type.startswith(IMAGE_PREFIX):
        if content_type in ALLOWED_IMAGE_CONTENT_TYPES:
            return True, MediaKind.IMAGE, None
        return False, None, UNSUPPORTED_IMAGE_MESSAGE

    if content_type.startswith(VIDEO_PREFIX):
        if content_type in ALLOWED_VIDEO_CONTENT_TYPES:
            return True, MediaKind.VIDEO, None
        return False, None, UNSUPPORTED_VIDEO_MESSAGE

    return False, None, UNSUPPORTED_MEDIA_MESSAGE


def ensure_media_type(content_type: str | None, filename: str | None = None) -> MediaKind:
    """
    Classify a content type, raising on rejection.

    Raises:
        ClassificationError: If the content type is not accepted.
    """
    is_accepted, kind, reason = classify_media_type(content_type)
    if not is_accepted or kind is None:
        raise ClassificationError(
            reason or UNSUPPORTED_MEDIA_MESSAGE,
            content_type=content_type,
            filename=filename,
        )
    return kind


__all__ = [
    "ALLOWED_IMAGE_CONTENT_TYPES",
    "ALLOWED_VIDEO_CONTENT_TYPES",
    "UNSUPPORTED_IMAGE_MESSAGE",
    "UNSUPPORTED_MEDIA_MESSAGE",
    "UNSUPPORTED_VIDEO_MESSAGE",
    "classify_media_type",
    "ensure_media_type",
]
