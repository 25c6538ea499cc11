"""Download third-party dish photos and rehost them in our storage."""

import logging
import re
import secrets
import time
from dataclasses import dataclass
from typing import Protocol

from cloudmenu.domain.images import DownloadedImage

_logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 5 * 1024 * 1024

_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/pjpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

_UNSAFE_NAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)
_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


class ImageDownloader(Protocol):
    """Interface for fetching remote images."""

    async def download(self, url: str) -> DownloadedImage:
        """Download an image, raising on transport or HTTP errors."""


class ImageStorage(Protocol):
    """Interface for the public object storage bucket."""

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        """Upload bytes at ``path`` and return their public URL."""


@dataclass
class ImageRehostService:
    """Copies a remote image into the application's storage bucket."""

    downloader: ImageDownloader
    storage: ImageStorage
    folder: str = "menu-items"
    max_bytes: int = DEFAULT_MAX_BYTES

    async def rehost(self, image_url: str, dish_name: str) -> str | None:
        """Return the public URL of the rehosted copy, or ``None`` on failure."""
        try:
            _logger.info("Downloading image: %s", image_url)
            image = await self.downloader.download(image_url)
            if image.size > self.max_bytes:
                _logger.warning("Image too large (%s bytes), skipping", image.size)
                return None
            path = build_object_path(
                self.folder, dish_name, choose_extension(image.content_type, image_url)
            )
            _logger.info("Uploading image to storage: %s", path)
            public_url = self.storage.upload(
                path, image.content, _media_type(image.content_type) or "image/jpeg"
            )
        except Exception:
            _logger.exception(
                "Failed to rehost image", extra={"image_url": image_url}
            )
            return None
        _logger.info("Image uploaded: %s", public_url)
        return public_url


def choose_extension(content_type: str | None, source_url: str) -> str:
    """Pick a file extension from the content type, else from the URL."""
    media_type = _media_type(content_type)
    if media_type in _EXTENSIONS:
        return _EXTENSIONS[media_type]
    return "jpg" if ".jpg" in source_url else "jpeg"


def build_object_path(folder: str, dish_name: str, extension: str) -> str:
    """Return ``<folder>/<ms>-<token>-<name>.<ext>`` for an upload."""
    timestamp_ms = time.time_ns() // 1_000_000
    token = _to_base36(secrets.randbits(52))
    safe_name = _UNSAFE_NAME_CHARS.sub("-", dish_name).lower()
    return f"{folder}/{timestamp_ms}-{token}-{safe_name}.{extension}"


def _media_type(content_type: str | None) -> str | None:
    if not content_type:
        return None
    return content_type.split(";", maxsplit=1)[0].strip().lower() or None


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))
