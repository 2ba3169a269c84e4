"""
Remote media store client for Vitrine Media.

This module wraps the Cloudinary SDK behind a small async interface used by
the media publisher. Credentials are injected at construction and passed on
every call, so no process-wide ``cloudinary.config()`` state is read or
mutated.

Key Features:
- Upload of an in-memory payload with folder, resource type and
  transformation directives
- Async-wrapped SDK calls (the SDK is blocking) for non-blocking request
  handling
- Remote errors surfaced verbatim as ``MediaStoreError``
"""

import asyncio
import io
import logging
from collections.abc import Callable, Sequence
from functools import wraps
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

import cloudinary.exceptions
import cloudinary.uploader


if TYPE_CHECKING:
    from vitrine_media.config import Settings


logger = logging.getLogger(__name__)

T = TypeVar("T")


def async_wrap(func: Callable[..., T]) -> Callable[..., "asyncio.Future[T]"]:
    """
    Decorator to wrap synchronous SDK operations for async execution.

    Uses asyncio.to_thread to run the blocking Cloudinary HTTP call in a
    worker thread, keeping the event loop free for other requests.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(func, *args, **kwargs)

    return wrapper


class MediaStoreError(Exception):
    """Raised when the remote media store rejects or fails an upload."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MediaStoreConfigurationError(MediaStoreError):
    """Raised when the store is constructed without usable credentials."""


class MediaStore(Protocol):
    """Capability the publisher relies on: one async upload call."""

    async def upload(
        self,
        payload: bytes,
        *,
        folder: str,
        resource_type: str,
        transformation: Sequence[dict[str, Any]],
        filename: str | None = None,
    ) -> dict[str, Any]: ...


class CloudinaryMediaStore:
    """
    Cloudinary-backed media store.

    Attributes:
        cloud_name: Cloudinary cloud name
        secure: Whether https delivery URLs are requested
        timeout: Per-call HTTP timeout in seconds

    Example:
        >>> store = CloudinaryMediaStore(
        ...     cloud_name="demo",
        ...     api_key="123456789012345",
        ...     api_secret="secret",
        ... )
        >>> result = await store.upload(
        ...     payload,
        ...     folder="nono-vitrine/products/images",
        ...     resource_type="image",
        ...     transformation=[{"quality": "auto"}],
        ... )
        >>> print(result["secure_url"])
    """

    def __init__(
        self,
        cloud_name: str | None,
        api_key: str | None,
        api_secret: str | None,
        secure: bool = True,
        timeout: int | None = None,
    ) -> None:
        if not (cloud_name and api_key and api_secret):
            raise MediaStoreConfigurationError(
                "Cloudinary credentials are missing: set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET"
            )

        self.cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self.secure = secure
        self.timeout = timeout

        logger.info("CloudinaryMediaStore initialized for cloud=%s", cloud_name)

    @classmethod
    def from_settings(cls, settings: "Settings") -> "CloudinaryMediaStore":
        """Build a store from application settings."""
        return cls(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=settings.cloudinary_secure,
            timeout=settings.cloudinary_timeout_seconds,
        )

    def _credentials(self) -> dict[str, Any]:
        options: dict[str, Any] = {
            "cloud_name": self.cloud_name,
            "api_key": self._api_key,
            "api_secret": self._api_secret,
            "secure": self.secure,
        }
        if self.timeout is not None:
            options["timeout"] = self.timeout
        return options

    async def upload(
        self,
        payload: bytes,
        *,
        folder: str,
        resource_type: str,
        transformation: Sequence[dict[str, Any]],
        filename: str | None = None,
    ) -> dict[str, Any]:
        """
        Upload an in-memory payload to Cloudinary.

        Args:
            payload: Complete file content.
            folder: Destination folder (e.g. "nono-vitrine/products/images").
            resource_type: "image" or "video".
            transformation: Incoming transformation directives applied by the store.
            filename: Original filename, forwarded for the store's bookkeeping.

        Returns:
            The store's result descriptor, unchanged.

        Raises:
            MediaStoreError: If the store reports a failure.
        """
        stream = io.BytesIO(payload)
        if filename:
            stream.name = filename

        options = self._credentials()
        options.update(
            folder=folder,
            resource_type=resource_type,
            transformation=[dict(step) for step in transformation],
        )

        logger.debug(
            "Uploading %d bytes to folder=%s resource_type=%s",
            len(payload),
            folder,
            resource_type,
        )

        @async_wrap
        def _upload() -> dict[str, Any]:
            return cloudinary.uploader.upload(stream, **options)

        try:
            result = await _upload()
        except cloudinary.exceptions.Error as e:
            error_msg = str(e) or type(e).__name__
            logger.error("Cloudinary upload to %s failed: %s", folder, error_msg)
            raise MediaStoreError(error_msg) from e
        finally:
            stream.close()

        return dict(result)
