"""Raw HTTP client for the OpenAI Responses API used for menu photos."""

from dataclasses import dataclass

import httpx

from cloudmenu.services.menu_extraction import VisionClient


@dataclass
class HttpxVisionClient(VisionClient):
    """Vision client that exposes every upstream status to the retrier."""

    api_key: str | None
    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(
        cls, api_key: str | None, base_url: str, timeout_seconds: float
    ) -> "HttpxVisionClient":
        """Create a vision client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(timeout=timeout_seconds),
        )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    async def create_response(self, payload: dict[str, object]) -> httpx.Response:
        """POST a Responses API request without raising on error statuses."""
        return await self.http_client.post(
            f"{self.base_url}/responses",
            headers={
                "Authorization": f"Bearer {self.api_key or ''}",
                "Content-Type": "application/json",
            },
            json=payload,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
