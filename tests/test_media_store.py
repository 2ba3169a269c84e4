"""
Cloudinary media store tests.

The Cloudinary SDK is patched at ``cloudinary.uploader.upload`` so no
network call is made.
"""

from typing import Any
from unittest.mock import patch

import cloudinary.exceptions
import pytest

from vitrine_media.config import Settings
from vitrine_media.core.media_store import (
    CloudinaryMediaStore,
    MediaStoreConfigurationError,
    MediaStoreError,
    async_wrap,
)


@pytest.fixture
def store(test_settings: Settings) -> CloudinaryMediaStore:
    return CloudinaryMediaStore.from_settings(test_settings)


class TestConfiguration:
    @pytest.mark.parametrize(
        ("cloud_name", "api_key", "api_secret"),
        [
            (None, "key", "secret"),
            ("cloud", None, "secret"),
            ("cloud", "key", None),
            ("", "key", "secret"),
        ],
    )
    def test_missing_credentials(
        self, cloud_name: str | None, api_key: str | None, api_secret: str | None
    ) -> None:
        with pytest.raises(MediaStoreConfigurationError):
            CloudinaryMediaStore(cloud_name, api_key, api_secret)

    def test_from_settings(self, store: CloudinaryMediaStore, test_settings: Settings) -> None:
        assert store.cloud_name == "test-cloud"
        assert store.secure is True
        assert store.timeout == test_settings.cloudinary_timeout_seconds

    def test_configuration_error_is_store_error(self) -> None:
        assert issubclass(MediaStoreConfigurationError, MediaStoreError)


@pytest.mark.asyncio
class TestUpload:
    async def test_upload_passes_options(self, store: CloudinaryMediaStore) -> None:
        received: dict[str, Any] = {}

        def fake_upload(file: Any, **options: Any) -> dict[str, Any]:
            received["content"] = file.read()
            received["name"] = getattr(file, "name", None)
            received.update(options)
            return {"public_id": "nono-vitrine/products/images/a", "secure_url": "https://x/a"}

        with patch("cloudinary.uploader.upload", side_effect=fake_upload) as upload_mock:
            result = await store.upload(
                b"image-bytes",
                folder="nono-vitrine/products/images",
                resource_type="image",
                transformation=[{"quality": "auto"}],
                filename="a.jpg",
            )

        upload_mock.assert_called_once()
        assert result == {"public_id": "nono-vitrine/products/images/a", "secure_url": "https://x/a"}
        assert received["content"] == b"image-bytes"
        assert received["name"] == "a.jpg"
        assert received["folder"] == "nono-vitrine/products/images"
        assert received["resource_type"] == "image"
        assert received["transformation"] == [{"quality": "auto"}]
        assert received["cloud_name"] == "test-cloud"
        assert received["api_key"] == "123456789012345"
        assert received["api_secret"] == "test-api-secret"
        assert received["secure"] is True

    async def test_remote_error_is_wrapped(self, store: CloudinaryMediaStore) -> None:
        with patch(
            "cloudinary.uploader.upload",
            side_effect=cloudinary.exceptions.BadRequest("Invalid image file"),
        ):
            with pytest.raises(MediaStoreError) as exc_info:
                await store.upload(
                    b"not-an-image",
                    folder="nono-vitrine/products/images",
                    resource_type="image",
                    transformation=[],
                )

        assert exc_info.value.message == "Invalid image file"
        assert isinstance(exc_info.value.__cause__, cloudinary.exceptions.BadRequest)

    async def test_async_wrap_runs_function(self) -> None:
        @async_wrap
        def add(a: int, b: int) -> int:
            return a + b

        assert await add(2, 3) == 5
