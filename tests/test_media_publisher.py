"""
Media publisher tests.

Test Organization:
- TestPublishTargets: folders and transformations per field
- TestPublish: single publish success and failure
- TestPublishMany: independent batch publishing
"""

from unittest.mock import AsyncMock

import pytest

from vitrine_media.models.upload import MediaKind, StagedFile
from vitrine_media.services.media_publisher import (
    IMAGE_TRANSFORMATION,
    VIDEO_TRANSFORMATION,
    MediaPublisher,
    image_target,
    video_target,
)
from vitrine_media.utils.upload_errors import PublishError, UploadStage


def _staged(
    field_name: str,
    filename: str,
    content_type: str = "image/jpeg",
    kind: MediaKind = MediaKind.IMAGE,
    buffer: bytes = b"media-bytes",
) -> StagedFile:
    return StagedFile(
        field_name=field_name,
        filename=filename,
        content_type=content_type,
        kind=kind,
        buffer=buffer,
    )


class TestPublishTargets:
    def test_image_target(self) -> None:
        target = image_target("nono-vitrine")
        assert target.folder == "nono-vitrine/products/images"
        assert target.resource_kind is MediaKind.IMAGE
        assert target.transformation_list() == [
            {"width": 800, "height": 800, "crop": "limit", "quality": "auto"},
            {"format": "auto"},
        ]

    def test_video_target(self) -> None:
        target = video_target("nono-vitrine")
        assert target.folder == "nono-vitrine/products/videos"
        assert target.resource_kind is MediaKind.VIDEO
        assert target.transformation_list() == [{"quality": "auto"}]

    def test_transformation_list_is_a_copy(self) -> None:
        steps = image_target().transformation_list()
        steps[0]["width"] = 10
        assert IMAGE_TRANSFORMATION[0]["width"] == 800

    def test_target_follows_field_name(self, publisher: MediaPublisher) -> None:
        assert publisher.target_for(_staged("images", "a.jpg")).folder.endswith(
            "/products/images"
        )
        assert publisher.target_for(
            _staged("videos", "b.mp4", "video/mp4", MediaKind.VIDEO)
        ).folder.endswith("/products/videos")

    def test_video_sent_as_image_uses_image_target(self, publisher: MediaPublisher) -> None:
        staged = _staged("images", "clip.mp4", "video/mp4", MediaKind.VIDEO)
        assert publisher.target_for(staged).resource_kind is MediaKind.IMAGE

    def test_single_field_uses_file_kind(self, publisher: MediaPublisher) -> None:
        image = _staged("file", "a.png", "image/png", MediaKind.IMAGE)
        video = _staged("file", "b.webm", "video/webm", MediaKind.VIDEO)
        assert publisher.target_for(image).transformation == IMAGE_TRANSFORMATION
        assert publisher.target_for(video).transformation == VIDEO_TRANSFORMATION

    def test_custom_root_folder(self, mock_store: AsyncMock) -> None:
        publisher = MediaPublisher(mock_store, root_folder="staging-shop")
        staged = _staged("videos", "b.mp4", "video/mp4", MediaKind.VIDEO)
        assert publisher.target_for(staged).folder == "staging-shop/products/videos"


@pytest.mark.asyncio
class TestPublish:
    async def test_publish_image(self, publisher: MediaPublisher, mock_store: AsyncMock) -> None:
        staged = _staged("images", "front.jpg", buffer=b"\xff\xd8jpeg")

        outcome = await publisher.publish(staged)

        mock_store.upload.assert_awaited_once_with(
            b"\xff\xd8jpeg",
            folder="nono-vitrine/products/images",
            resource_type="image",
            transformation=[
                {"width": 800, "height": 800, "crop": "limit", "quality": "auto"},
                {"format": "auto"},
            ],
            filename="front.jpg",
        )
        assert outcome.success is True
        assert outcome.error is None
        assert outcome.size == 6
        assert outcome.asset["public_id"] == "nono-vitrine/products/images/front"

    async def test_asset_is_returned_unchanged(
        self, publisher: MediaPublisher, mock_store: AsyncMock
    ) -> None:
        descriptor = {"public_id": "x", "secure_url": "https://cdn/x", "eager": [{"w": 1}]}
        mock_store.upload.side_effect = None
        mock_store.upload.return_value = descriptor

        outcome = await publisher.publish(_staged("images", "x.jpg"))

        assert outcome.asset == descriptor

    async def test_publish_video(self, publisher: MediaPublisher, mock_store: AsyncMock) -> None:
        staged = _staged("videos", "walk.mp4", "video/mp4", MediaKind.VIDEO)

        await publisher.publish(staged)

        kwargs = mock_store.upload.await_args.kwargs
        assert kwargs["folder"] == "nono-vitrine/products/videos"
        assert kwargs["resource_type"] == "video"
        assert kwargs["transformation"] == [{"quality": "auto"}]

    async def test_buffer_released_after_success(self, publisher: MediaPublisher) -> None:
        staged = _staged("images", "a.jpg")

        await publisher.publish(staged)

        assert staged.released is True
        assert staged.buffer == b""

    async def test_remote_failure_becomes_outcome_error(
        self, publisher: MediaPublisher, store_failures: dict[str, str]
    ) -> None:
        store_failures["broken.jpg"] = "Invalid image file"
        staged = _staged("images", "broken.jpg")

        outcome = await publisher.publish(staged)

        assert outcome.success is False
        assert outcome.asset is None
        assert isinstance(outcome.error, PublishError)
        assert outcome.error.message == "Invalid image file"
        assert outcome.error.stage is UploadStage.PUBLISHER
        assert outcome.error.filename == "broken.jpg"
        assert staged.released is True


@pytest.mark.asyncio
class TestPublishMany:
    async def test_mixed_results_keep_order(
        self,
        publisher: MediaPublisher,
        mock_store: AsyncMock,
        store_failures: dict[str, str],
    ) -> None:
        store_failures["b.jpg"] = "Resource limit exceeded"
        staged_files = [
            _staged("images", "a.jpg"),
            _staged("images", "b.jpg"),
            _staged("videos", "c.mp4", "video/mp4", MediaKind.VIDEO),
        ]

        outcomes = await publisher.publish_many(staged_files)

        assert [outcome.filename for outcome in outcomes] == ["a.jpg", "b.jpg", "c.mp4"]
        assert [outcome.success for outcome in outcomes] == [True, False, True]
        assert outcomes[1].error.message == "Resource limit exceeded"
        assert mock_store.upload.await_count == 3
        assert all(staged.released for staged in staged_files)

    async def test_unexpected_store_error_stays_with_its_file(
        self, publisher: MediaPublisher, mock_store: AsyncMock
    ) -> None:
        default_upload = mock_store.upload.side_effect

        async def _upload(payload: bytes, **kwargs):
            if kwargs["filename"] == "b.jpg":
                raise RuntimeError("connection reset by peer")
            return await default_upload(payload, **kwargs)

        mock_store.upload.side_effect = _upload
        staged_files = [
            _staged("images", "a.jpg"),
            _staged("images", "b.jpg"),
            _staged("videos", "c.mp4", "video/mp4", MediaKind.VIDEO),
        ]

        outcomes = await publisher.publish_many(staged_files)

        assert [outcome.success for outcome in outcomes] == [True, False, True]
        assert outcomes[1].error.message == "connection reset by peer"
        assert outcomes[1].error.stage is UploadStage.PUBLISHER
        assert all(staged.released for staged in staged_files)

    async def test_empty_batch(self, publisher: MediaPublisher, mock_store: AsyncMock) -> None:
        assert await publisher.publish_many([]) == []
        mock_store.upload.assert_not_awaited()
