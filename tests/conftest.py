"""
Pytest Configuration and Test Fixtures for Vitrine Media

This module provides the shared fixtures:
- Test Settings with Cloudinary credentials and default limits
- A mocked media store recording every upload call
- MediaPublisher / UploadService wired to the mocked store
- Multipart body builder and chunked stream helpers
- FastAPI TestClient with the upload service dependency overridden
"""

from collections.abc import AsyncIterator, Callable, Generator
from typing import Any
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from vitrine_media.api.v1.uploads import get_upload_service
from vitrine_media.config import Settings
from vitrine_media.core.media_store import CloudinaryMediaStore, MediaStoreError
from vitrine_media.main import app
from vitrine_media.services.media_publisher import MediaPublisher
from vitrine_media.services.upload_service import UploadService


MIB: int = 1024 * 1024
TEST_BOUNDARY: str = "----vitrine-test-boundary-7MA4YWxkTrZu0gW"

# A part is (field_name, filename or None for text fields, content_type or None, data)
MultipartPart = tuple[str, str | None, str | None, bytes]


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "slow: mark test as slow-running")


# ==============================================================================
# Settings Fixtures
# ==============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings with Cloudinary credentials and the default upload limits."""
    return Settings(
        app_env="testing",
        debug=False,
        log_level="debug",
        json_logs=False,
        cloudinary_cloud_name="test-cloud",
        cloudinary_api_key="123456789012345",
        cloudinary_api_secret="test-api-secret",
        media_root_folder="nono-vitrine",
        single_upload_max_size_mb=5,
        multi_upload_max_size_mb=50,
        max_images_per_request=10,
        max_videos_per_request=5,
        max_files_per_request=15,
    )


# ==============================================================================
# Media Store Fixtures
# ==============================================================================


@pytest.fixture
def store_failures() -> dict[str, str]:
    """Filename -> remote error message; populate to make uploads fail."""
    return {}


@pytest.fixture
def mock_store(store_failures: dict[str, str]) -> AsyncMock:
    """
    Mocked Cloudinary store.

    Returns a Cloudinary-like descriptor for every upload, except for
    filenames listed in ``store_failures`` which raise MediaStoreError.
    """

    async def _upload(
        payload: bytes,
        *,
        folder: str,
        resource_type: str,
        transformation: list[dict[str, Any]],
        filename: str | None = None,
    ) -> dict[str, Any]:
        if filename in store_failures:
            raise MediaStoreError(store_failures[filename])
        stem = (filename or "upload").rsplit(".", 1)[0]
        return {
            "public_id": f"{folder}/{stem}",
            "resource_type": resource_type,
            "bytes": len(payload),
            "secure_url": (
                f"https://res.cloudinary.com/test-cloud/{resource_type}/upload/{folder}/{stem}"
            ),
        }

    store = AsyncMock(spec=CloudinaryMediaStore)
    store.upload.side_effect = _upload
    return store


@pytest.fixture
def publisher(mock_store: AsyncMock, test_settings: Settings) -> MediaPublisher:
    return MediaPublisher(mock_store, root_folder=test_settings.media_root_folder)


@pytest.fixture
def upload_service(publisher: MediaPublisher, test_settings: Settings) -> UploadService:
    return UploadService(publisher, settings=test_settings)


# ==============================================================================
# Multipart Helpers
# ==============================================================================


@pytest.fixture
def build_multipart() -> Callable[..., tuple[bytes, str]]:
    """
    Return a builder producing (body, content_type_header) for a list of parts.

    Example:
        body, content_type = build_multipart([
            ("images", "a.jpg", "image/jpeg", b"..."),
            ("title", None, None, b"Summer dress"),
        ])
    """

    def _build(parts: list[MultipartPart], boundary: str = TEST_BOUNDARY) -> tuple[bytes, str]:
        body = b""
        for field_name, filename, content_type, data in parts:
            disposition = f'form-data; name="{field_name}"'
            if filename is not None:
                disposition += f'; filename="{filename}"'
            body += f"--{boundary}\r\n".encode()
            body += f"Content-Disposition: {disposition}\r\n".encode()
            if content_type is not None:
                body += f"Content-Type: {content_type}\r\n".encode()
            body += b"\r\n" + data + b"\r\n"
        body += f"--{boundary}--\r\n".encode()
        return body, f"multipart/form-data; boundary={boundary}"

    return _build


@pytest.fixture
def chunked() -> Callable[[bytes, int], AsyncIterator[bytes]]:
    """Return a helper that streams a body as an async iterator of fixed-size chunks."""

    def _chunked(body: bytes, chunk_size: int = 64 * 1024) -> AsyncIterator[bytes]:
        async def _stream() -> AsyncIterator[bytes]:
            for offset in range(0, len(body), chunk_size):
                yield body[offset : offset + chunk_size]

        return _stream()

    return _chunked


def make_payload(size: int, fill: bytes = b"\xab") -> bytes:
    """Deterministic payload of ``size`` bytes."""
    return fill * size


@pytest.fixture
def payload() -> Callable[..., bytes]:
    return make_payload


# ==============================================================================
# FastAPI Client Fixtures
# ==============================================================================


@pytest.fixture
def test_client(upload_service: UploadService) -> Generator[TestClient, None, None]:
    """TestClient with the upload service wired to the mocked store."""
    app.dependency_overrides[get_upload_service] = lambda: upload_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
