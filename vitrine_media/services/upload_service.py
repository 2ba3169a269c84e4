"""
Vitrine Media Upload Service Module

This module provides the upload orchestration used by the API layer. A
request body flows through the pipeline in three steps:

1. Admission: the multipart body is streamed through the limiter and the
   media type classifier; admitted files are staged in memory.
2. Publishing: each staged file is published to the media store with the
   target selected from its field name.
3. Reporting: single-file uploads raise the publish error if the one file
   failed; multi-file uploads report every file's outcome independently.

Two modes are supported:
- Single-file: field ``file``, 5 MB
- Multi-file: fields ``images`` (10) and ``videos`` (5), 50 MB each, 15 total
"""

import logging
import uuid
from collections.abc import AsyncIterator

from vitrine_media.config import Settings, get_settings
from vitrine_media.models.upload import PublishOutcome
from vitrine_media.services.media_publisher import MediaPublisher
from vitrine_media.utils.logger import add_log_context
from vitrine_media.utils.multipart_reader import ParsedUpload, read_multipart
from vitrine_media.utils.upload_errors import LimiterError, LimitKind, UploadError
from vitrine_media.utils.upload_limits import UploadLimits


logger = logging.getLogger(__name__)


class UploadService:
    """
    Upload orchestration service.

    Attributes:
        publisher: MediaPublisher used for every admitted file
        settings: Application settings
        single_limits: Quota regime of the single-file endpoint
        multi_limits: Quota regime of the multi-file endpoint

    Example:
        ```python
        store = CloudinaryMediaStore.from_settings(settings)
        service = UploadService(MediaPublisher(store, settings.media_root_folder))

        outcomes = await service.handle_multiple_upload(
            request.stream(), request.headers.get("content-type")
        )
        ```
    """

    def __init__(self, publisher: MediaPublisher, settings: Settings | None = None) -> None:
        self.publisher = publisher
        self.settings: Settings = settings or get_settings()
        self.single_limits = UploadLimits.single_file(self.settings)
        self.multi_limits = UploadLimits.multi_file(self.settings)

    async def _admit(
        self,
        stream: AsyncIterator[bytes],
        content_type: str | None,
        limits: UploadLimits,
        request_id: str,
    ) -> ParsedUpload:
        ctx_logger = add_log_context(logger, request_id=request_id, mode=limits.mode)
        try:
            parsed = await read_multipart(stream, content_type, limits)
        except UploadError as e:
            ctx_logger.warning(
                "Upload rejected at %s stage: %s",
                e.stage.value,
                e.message,
            )
            raise

        if not parsed.files:
            expected = " or ".join(f"'{name}'" for name in limits.field_limits)
            ctx_logger.warning("Upload rejected: request carried no file")
            raise LimiterError(
                LimitKind.MISSING_FILE,
                f"No file uploaded: expected a file in field {expected}",
            )

        ctx_logger.info(
            "Admitted %d file(s) totalling %d bytes",
            len(parsed.files),
            sum(staged.size for staged in parsed.files),
        )
        return parsed

    async def handle_single_upload(
        self,
        stream: AsyncIterator[bytes],
        content_type: str | None,
        request_id: str | None = None,
    ) -> PublishOutcome:
        """
        Admit and publish the single file of a ``file`` field upload.

        Args:
            stream: Raw request body chunks.
            content_type: Request Content-Type header.
            request_id: Identifier used to correlate log lines.

        Returns:
            PublishOutcome: The successful outcome.

        Raises:
            UploadError: Any admission failure, or the PublishError of a
                failed publish.
        """
        request_id = request_id or uuid.uuid4().hex
        parsed = await self._admit(stream, content_type, self.single_limits, request_id)

        outcome = await self.publisher.publish(parsed.files[0])
        if outcome.error is not None:
            raise outcome.error
        return outcome

    async def handle_multiple_upload(
        self,
        stream: AsyncIterator[bytes],
        content_type: str | None,
        request_id: str | None = None,
    ) -> list[PublishOutcome]:
        """
        Admit and publish every file of an ``images``/``videos`` upload.

        Each file is published independently; the returned list holds one
        outcome per file in arrival order, failures included. Already
        published files are never rolled back.

        Raises:
            UploadError: Any admission failure (nothing is published then).
        """
        request_id = request_id or uuid.uuid4().hex
        parsed = await self._admit(stream, content_type, self.multi_limits, request_id)

        outcomes = await self.publisher.publish_many(parsed.files)

        failed = [outcome for outcome in outcomes if not outcome.success]
        ctx_logger = add_log_context(logger, request_id=request_id, mode=self.multi_limits.mode)
        if failed:
            ctx_logger.warning(
                "%d of %d file(s) failed to publish",
                len(failed),
                len(outcomes),
            )
        else:
            ctx_logger.info("Published %d file(s)", len(outcomes))
        return outcomes
