"""Remote image download client."""

from dataclasses import dataclass

import httpx

from cloudmenu.domain.images import DownloadedImage
from cloudmenu.services.image_rehost import ImageDownloader


@dataclass
class HttpxImageDownloader(ImageDownloader):
    """Image downloader using httpx."""

    http_client: httpx.AsyncClient
    timeout_seconds: float = 20.0

    @classmethod
    def create(cls, timeout_seconds: float) -> "HttpxImageDownloader":
        """Create a downloader with a managed httpx session."""
        return cls(
            http_client=httpx.AsyncClient(follow_redirects=True),
            timeout_seconds=timeout_seconds,
        )

    async def download(self, url: str) -> DownloadedImage:
        """Download the full image body."""
        response = await self.http_client.get(url, timeout=self.timeout_seconds)
        response.raise_for_status()
        return DownloadedImage(
            content=response.content,
            content_type=response.headers.get("content-type"),
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
