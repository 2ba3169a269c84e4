"""
Upload limits and the per-request limiter.

Two quota regimes exist, selected by the endpoint:

- Single-file: one file in field ``file``, at most 5 MB.
- Multi-file: up to 10 files in ``images`` and 5 in ``videos``, at most
  50 MB each and 15 files in total.

The limiter is consulted while the request body is streamed, so an oversized
or surplus file is rejected before it is fully buffered and before anything
is forwarded to the media store.
"""

from collections import Counter
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from vitrine_media.utils.upload_errors import LimiterError, LimitKind


if TYPE_CHECKING:
    from vitrine_media.config import Settings


BYTES_PER_KB: int = 1024
BYTES_PER_MB: int = BYTES_PER_KB * BYTES_PER_KB

# Text form fields (non-file parts) are capped like the multipart middleware default
DEFAULT_MAX_FIELD_VALUE_BYTES: int = 1 * BYTES_PER_MB


def format_file_size(size_bytes: int) -> str:
    """Format a byte count for limit messages (e.g. 5 MB, 512 KB)."""
    if size_bytes >= BYTES_PER_MB and size_bytes % BYTES_PER_MB == 0:
        return f"{size_bytes // BYTES_PER_MB} MB"
    if size_bytes >= BYTES_PER_MB:
        return f"{size_bytes / BYTES_PER_MB:.1f} MB"
    if size_bytes >= BYTES_PER_KB:
        return f"{size_bytes // BYTES_PER_KB} KB"
    return f"{size_bytes} bytes"


class UploadLimits(BaseModel):
    """
    Immutable description of one quota regime.

    Attributes:
        mode: Name of the regime ("single" or "multiple"), used in logs
        field_limits: Accepted file field names mapped to their max file count
        max_file_size: Maximum size of any single file in bytes
        max_files: Maximum number of files across all fields
        max_field_value_size: Maximum size of a text form field in bytes
    """

    model_config = ConfigDict(frozen=True)

    mode: str
    field_limits: dict[str, int]
    max_file_size: int = Field(..., gt=0)
    max_files: int = Field(..., gt=0)
    max_field_value_size: int = Field(default=DEFAULT_MAX_FIELD_VALUE_BYTES, gt=0)

    @classmethod
    def single_file(cls, settings: "Settings") -> "UploadLimits":
        """Limits for the single-file endpoint (field ``file``)."""
        return cls(
            mode="single",
            field_limits={"file": 1},
            max_file_size=settings.single_upload_max_size_bytes,
            max_files=1,
        )

    @classmethod
    def multi_file(cls, settings: "Settings") -> "UploadLimits":
        """Limits for the multi-file endpoint (fields ``images`` and ``videos``)."""
        return cls(
            mode="multiple",
            field_limits={
                "images": settings.max_images_per_request,
                "videos": settings.max_videos_per_request,
            },
            max_file_size=settings.multi_upload_max_size_bytes,
            max_files=settings.max_files_per_request,
        )


class UploadLimiter:
    """
    Tracks file counts for one request and enforces an UploadLimits regime.

    A limiter instance must not be shared between requests.
    """

    def __init__(self, limits: UploadLimits) -> None:
        self.limits = limits
        self.field_counts: Counter[str] = Counter()
        self.total_files = 0

    def admit_part(self, field_name: str, filename: str | None = None) -> None:
        """
        Count a new file part, rejecting it if it breaks a count limit.

        Raises:
            LimiterError: For an unknown file field, too many files overall,
                or too many files in this field.
        """
        max_for_field = self.limits.field_limits.get(field_name)
        if max_for_field is None:
            expected = ", ".join(f"'{name}'" for name in self.limits.field_limits)
            raise LimiterError(
                LimitKind.UNEXPECTED_FIELD,
                f"Unexpected file field '{field_name}' (expected {expected})",
                field_name=field_name,
                filename=filename,
            )

        self.total_files += 1
        if self.total_files > self.limits.max_files:
            raise LimiterError(
                LimitKind.FILE_COUNT,
                f"Too many files: at most {self.limits.max_files} files per request",
                field_name=field_name,
                filename=filename,
            )

        self.field_counts[field_name] += 1
        if self.field_counts[field_name] > max_for_field:
            raise LimiterError(
                LimitKind.FIELD_COUNT,
                f"Too many files in field '{field_name}': at most {max_for_field} allowed",
                field_name=field_name,
                filename=filename,
            )

    def check_size(self, field_name: str, filename: str | None, size: int) -> None:
        """
        Reject a file whose (running) size exceeds the per-file limit.

        Raises:
            LimiterError: If ``size`` is above ``max_file_size``.
        """
        if size > self.limits.max_file_size:
            raise LimiterError(
                LimitKind.FILE_SIZE,
                f"File too large: '{filename or field_name}' exceeds the "
                f"{format_file_size(self.limits.max_file_size)} limit",
                field_name=field_name,
                filename=filename,
            )

    def check_field_value(self, field_name: str, size: int) -> None:
        """Reject a text form field longer than ``max_field_value_size``."""
        if size > self.limits.max_field_value_size:
            raise LimiterError(
                LimitKind.FIELD_VALUE,
                f"Field value too long: '{field_name}' exceeds the "
                f"{format_file_size(self.limits.max_field_value_size)} limit",
                field_name=field_name,
            )
