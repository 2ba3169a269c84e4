"""
Utilities Package for the Vitrine Media service.

Modules:
--------
media_classifier:
    Accept/reject decision on a file's declared content type.

upload_limits:
    Single-file and multi-file quota regimes and the per-request limiter.

multipart_reader:
    Streaming multipart/form-data parser that stages admitted files in memory.

upload_errors:
    Upload error taxonomy and the client-facing error classifier.

logger:
    JSON / plain-text logging setup and per-request context adapter.

Submodules are imported directly (e.g. ``from vitrine_media.utils.upload_limits
import UploadLimits``); this package does not re-export them because the
validation modules depend on ``vitrine_media.models``.
"""
