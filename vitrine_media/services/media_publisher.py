"""
Remote media publisher.

Publishes staged files to the media store, choosing the destination folder
and transformation directives from the field the file arrived in:

- ``images``: ``<root>/products/images``, bounded to 800x800 ("limit" crop)
  with automatic quality and format
- ``videos``: ``<root>/products/videos``, automatic quality only
- ``file`` (single-file endpoint): the target matching the file's kind

A publish attempt resolves to a ``PublishOutcome`` holding either the
store's descriptor, unchanged, or a ``PublishError`` carrying the store's
message. Nothing is retried, and a failure in one file of a batch does not
undo the others.
"""

import asyncio
import logging
from collections.abc import Sequence

from vitrine_media.core.media_store import MediaStore, MediaStoreError
from vitrine_media.models.upload import MediaKind, PublishOutcome, PublishTarget, StagedFile
from vitrine_media.utils.upload_errors import PublishError


logger = logging.getLogger(__name__)

DEFAULT_ROOT_FOLDER: str = "nono-vitrine"

IMAGE_TRANSFORMATION: tuple[dict[str, object], ...] = (
    {"width": 800, "height": 800, "crop": "limit", "quality": "auto"},
    {"format": "auto"},
)

VIDEO_TRANSFORMATION: tuple[dict[str, object], ...] = ({"quality": "auto"},)

FIELD_KINDS: dict[str, MediaKind] = {
    "images": MediaKind.IMAGE,
    "videos": MediaKind.VIDEO,
}


def image_target(root_folder: str = DEFAULT_ROOT_FOLDER) -> PublishTarget:
    """Publish target for product images."""
    return PublishTarget(
        folder=f"{root_folder}/products/images",
        resource_kind=MediaKind.IMAGE,
        transformation=IMAGE_TRANSFORMATION,
    )


def video_target(root_folder: str = DEFAULT_ROOT_FOLDER) -> PublishTarget:
    """Publish target for product videos."""
    return PublishTarget(
        folder=f"{root_folder}/products/videos",
        resource_kind=MediaKind.VIDEO,
        transformation=VIDEO_TRANSFORMATION,
    )


class MediaPublisher:
    """
    Publishes staged files to a media store.

    Attributes:
        store: The media store capability (injected, never a global)
        root_folder: Folder prefix for every published asset
    """

    def __init__(self, store: MediaStore, root_folder: str = DEFAULT_ROOT_FOLDER) -> None:
        self.store = store
        self.root_folder = root_folder
        self._targets = {
            MediaKind.IMAGE: image_target(root_folder),
            MediaKind.VIDEO: video_target(root_folder),
        }

    def target_for(self, staged: StagedFile) -> PublishTarget:
        """Select the publish target from the file's field name."""
        kind = FIELD_KINDS.get(staged.field_name, staged.kind)
        return self._targets[kind]

    async def publish(
        self,
        staged: StagedFile,
        target: PublishTarget | None = None,
    ) -> PublishOutcome:
        """
        Publish one staged file.

        The staged buffer is released once the attempt resolves, whether it
        succeeded or not.

        Args:
            staged: The admitted file.
            target: Explicit destination; defaults to ``target_for(staged)``.

        Returns:
            PublishOutcome: ``asset`` set on success, ``error`` set on a
            failure of the upload call.
        """
        target = target or self.target_for(staged)
        outcome = PublishOutcome(
            field_name=staged.field_name,
            filename=staged.filename,
            content_type=staged.content_type,
            size=staged.size,
            target=target,
        )

        try:
            outcome.asset = await self.store.upload(
                staged.buffer,
                folder=target.folder,
                resource_type=target.resource_kind.value,
                transformation=target.transformation_list(),
                filename=staged.filename,
            )
            logger.info(
                "Published '%s' (%d bytes) to %s",
                staged.filename,
                staged.size,
                target.folder,
            )
        except MediaStoreError as e:
            logger.warning(
                "Publishing '%s' to %s failed: %s",
                staged.filename,
                target.folder,
                e.message,
            )
            outcome.error = PublishError(
                e.message,
                field_name=staged.field_name,
                filename=staged.filename,
            )
        except Exception as e:
            logger.exception(
                "Unexpected error publishing '%s' to %s",
                staged.filename,
                target.folder,
            )
            outcome.error = PublishError(
                str(e) or type(e).__name__,
                field_name=staged.field_name,
                filename=staged.filename,
            )
        finally:
            staged.release()

        return outcome

    async def publish_many(self, staged_files: Sequence[StagedFile]) -> list[PublishOutcome]:
        """
        Publish every staged file independently and concurrently.

        Returns one outcome per file, in the same order as ``staged_files``.
        Successful publishes are kept even when others fail.
        """
        if not staged_files:
            return []
        outcomes = await asyncio.gather(*(self.publish(staged) for staged in staged_files))
        return list(outcomes)
