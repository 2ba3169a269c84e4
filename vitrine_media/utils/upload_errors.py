"""
Upload error taxonomy and client-facing error classification.

Every failure of the upload pipeline is raised as an ``UploadError`` subclass
tagged with the stage that produced it:

- request: the body is not a well-formed multipart/form-data payload
- limiter: a size or count limit was exceeded
- classifier: the declared content type is not an accepted image or video
- publisher: the remote media store rejected the upload

None of these errors is retried. ``classify_upload_error`` turns any of them
(or any other exception reaching the HTTP boundary) into the uniform
``{"success": False, "message": ...}`` body returned with status 400.
"""

from enum import Enum
from typing import Any


# HTTP status returned for every classified upload error
UPLOAD_ERROR_STATUS: int = 400

# Message used when an error carries no usable text
DEFAULT_UPLOAD_ERROR_MESSAGE: str = "Upload error"


class UploadStage(str, Enum):
    """Pipeline stage where an upload error originated."""

    REQUEST = "request"
    LIMITER = "limiter"
    CLASSIFIER = "classifier"
    PUBLISHER = "publisher"


class LimitKind(str, Enum):
    """Which upload limit a LimiterError refers to."""

    FILE_SIZE = "file_size"
    FILE_COUNT = "file_count"
    FIELD_COUNT = "field_count"
    UNEXPECTED_FIELD = "unexpected_field"
    FIELD_VALUE = "field_value"
    MISSING_FILE = "missing_file"


class UploadError(Exception):
    """Base exception for upload pipeline errors."""

    def __init__(self, message: str, stage: UploadStage) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage


class MalformedUploadError(UploadError):
    """Raised when the request body cannot be parsed as multipart/form-data."""

    def __init__(self, message: str) -> None:
        super().__init__(message, UploadStage.REQUEST)


class LimiterError(UploadError):
    """Raised when a size or count limit is exceeded."""

    def __init__(
        self,
        kind: LimitKind,
        message: str,
        field_name: str | None = None,
        filename: str | None = None,
    ) -> None:
        super().__init__(message, UploadStage.LIMITER)
        self.kind = kind
        self.field_name = field_name
        self.filename = filename


class ClassificationError(UploadError):
    """Raised when a file's declared content type is not accepted."""

    def __init__(
        self,
        message: str,
        content_type: str | None = None,
        filename: str | None = None,
    ) -> None:
        super().__init__(message, UploadStage.CLASSIFIER)
        self.content_type = content_type
        self.filename = filename


class PublishError(UploadError):
    """
    Raised (or returned inside a publish outcome) when the media store fails.

    ``payload`` is the remote store's error message, kept verbatim so the
    client sees exactly what the store reported.
    """

    def __init__(
        self,
        payload: str,
        field_name: str | None = None,
        filename: str | None = None,
    ) -> None:
        super().__init__(payload or DEFAULT_UPLOAD_ERROR_MESSAGE, UploadStage.PUBLISHER)
        self.payload = payload
        self.field_name = field_name
        self.filename = filename


def classify_upload_error(error: BaseException) -> dict[str, Any]:
    """
    Map any upload failure to the client-facing error body.

    Limiter errors carry a structured message describing the exceeded limit
    and are passed through as-is. Every other error contributes its own
    message, or the default "Upload error" when it has none. This function
    never raises.

    Args:
        error: The exception raised while admitting or publishing an upload.

    Returns:
        dict: ``{"success": False, "message": <str>}``

    Example:
        >>> classify_upload_error(LimiterError(LimitKind.FILE_COUNT, "Too many files"))
        {'success': False, 'message': 'Too many files'}
    """
    if isinstance(error, LimiterError):
        return {"success": False, "message": error.message}

    if isinstance(error, UploadError):
        message = error.message
    else:
        try:
            message = str(error)
        except Exception:
            message = ""

    return {"success": False, "message": message or DEFAULT_UPLOAD_ERROR_MESSAGE}


__all__ = [
    "DEFAULT_UPLOAD_ERROR_MESSAGE",
    "UPLOAD_ERROR_STATUS",
    "ClassificationError",
    "LimitKind",
    "LimiterError",
    "MalformedUploadError",
    "PublishError",
    "UploadError",
    "UploadStage",
    "classify_upload_error",
]
