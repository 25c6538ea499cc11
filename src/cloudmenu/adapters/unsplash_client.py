"""Unsplash photo search client."""

from dataclasses import dataclass

import httpx

from cloudmenu.services.image_search import PhotoSearchClient


@dataclass
class HttpxUnsplashClient(PhotoSearchClient):
    """HTTPX-backed Unsplash search client."""

    access_key: str | None
    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 20.0

    @classmethod
    def create(
        cls, access_key: str | None, base_url: str, timeout_seconds: float
    ) -> "HttpxUnsplashClient":
        """Create an Unsplash client with a managed httpx session."""
        return cls(
            access_key=access_key,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    @property
    def has_access_key(self) -> bool:
        return bool(self.access_key)

    async def search_photos(self, query: str, per_page: int = 10) -> httpx.Response:
        """Search landscape photos with strict content filtering."""
        return await self.http_client.get(
            f"{self.base_url}/search/photos",
            params={
                "query": query,
                "per_page": per_page,
                "orientation": "landscape",
                "content_filter": "high",
            },
            headers={"Authorization": f"Client-ID {self.access_key}"},
            timeout=self.timeout_seconds,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
