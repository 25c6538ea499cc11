"""Menu photo import: extraction followed by dish image enrichment."""

import asyncio
import base64
import json
import logging
from dataclasses import dataclass

import httpx

from cloudmenu.domain.menu import MenuExtract
from cloudmenu.services.image_rehost import ImageDownloader, ImageRehostService
from cloudmenu.services.image_search import ImageSearchService
from cloudmenu.services.menu_extraction import (
    TIMEOUT_MESSAGE,
    EmptyCompletionError,
    MenuExtractionService,
    MenuParseError,
)
from cloudmenu.services.retry import Sleeper

_logger = logging.getLogger(__name__)

DEFAULT_MENU_IMAGE_MAX_BYTES = 10 * 1024 * 1024


class MenuImportError(Exception):
    """Import failure carrying the HTTP status and body for the caller."""

    def __init__(self, status_code: int, payload: dict[str, object]) -> None:
        super().__init__(str(payload.get("error", "Menu import failed")))
        self.status_code = status_code
        self.payload = payload


@dataclass
class MenuImportService:
    """Turns a menu photograph into categories and items with dish photos."""

    extraction_service: MenuExtractionService
    image_search_service: ImageSearchService
    image_rehost_service: ImageRehostService
    downloader: ImageDownloader
    max_menu_image_bytes: int = DEFAULT_MENU_IMAGE_MAX_BYTES
    item_delay_seconds: float = 0.5
    check_credentials: bool = True
    sleep: Sleeper = asyncio.sleep

    async def import_menu(
        self, image_url: str, menu_id: str, import_images: bool = True
    ) -> MenuExtract:
        """Extract a menu from the photo at ``image_url``."""
        _logger.info("Importing menu photo", extra={"menu_id": menu_id})
        await self._verify_credentials()
        image_base64, mime_type = await self._load_menu_photo(image_url)

        response = await self.extraction_service.request_extraction(
            image_base64, mime_type
        )
        if not response.is_success:
            raise _extraction_error(response, self._has_api_key)

        try:
            menu = self.extraction_service.parse_response(response)
        except EmptyCompletionError as exc:
            raise MenuImportError(
                500, {"error": "No content received from AI"}
            ) from exc
        except MenuParseError as exc:
            _logger.error("Failed to parse AI response: %s", exc)
            raise MenuImportError(
                500,
                {"error": "Failed to parse AI response", "rawResponse": exc.raw_text},
            ) from exc

        _logger.info(
            "Extracted %s categories and %s items",
            len(menu.categories),
            sum(len(category.items) for category in menu.categories),
        )
        if import_images:
            await self.attach_images(menu)
        else:
            _logger.info("Image import disabled, skipping image search")
            menu.clear_images()
        return menu

    async def attach_images(self, menu: MenuExtract) -> None:
        """Search and rehost a photo for every dish, one dish at a time."""
        for index, item in enumerate(menu.iter_items()):
            if index:
                await self.sleep(self.item_delay_seconds)
            try:
                found_url = await self.image_search_service.find_image(item.name)
                if found_url is None:
                    _logger.info("No image found for %r", item.name)
                    item.image_url = ""
                    continue
                rehosted = await self.image_rehost_service.rehost(found_url, item.name)
                if rehosted is None:
                    _logger.info("Failed to store image for %r", item.name)
                item.image_url = rehosted or ""
            except Exception:
                _logger.exception(
                    "Image processing failed", extra={"dish_name": item.name}
                )
                item.image_url = ""

    @property
    def _has_api_key(self) -> bool:
        return self.extraction_service.client.has_api_key

    async def _verify_credentials(self) -> None:
        if not self._has_api_key:
            raise MenuImportError(
                500,
                {
                    "error": "Vision API key is not configured",
                    "hasApiKey": False,
                    "suggestion": "Set the OPENAI_API_KEY environment variable",
                },
            )
        if not self.check_credentials:
            return
        try:
            response = await self.extraction_service.check_credentials()
        except httpx.HTTPError as exc:
            _logger.exception("Vision API key test errored")
            raise MenuImportError(
                500,
                {
                    "error": "Failed to test vision API key",
                    "details": str(exc),
                    "suggestion": "Check your OPENAI_API_KEY environment variable",
                },
            ) from exc
        if response.is_success:
            return
        _logger.error(
            "Vision API key test failed: status=%s body=%s",
            response.status_code,
            response.text,
        )
        raise MenuImportError(
            response.status_code,
            {
                "error": "Vision API key test failed",
                "details": f"{response.status_code} {response.reason_phrase}",
                "rawError": response.text,
                "hasApiKey": self._has_api_key,
                "suggestion": _probe_suggestion(response.status_code),
            },
        )

    async def _load_menu_photo(self, image_url: str) -> tuple[str, str]:
        try:
            image = await self.downloader.download(image_url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            _logger.warning("Failed to fetch menu image: %s", exc)
            raise MenuImportError(400, {"error": "Failed to fetch image"}) from exc
        _logger.info("Menu image size: %s bytes", image.size)
        if image.size > self.max_menu_image_bytes:
            limit_mb = self.max_menu_image_bytes // (1024 * 1024)
            raise MenuImportError(
                400,
                {
                    "error": (
                        f"Image too large. Please use an image smaller than "
                        f"{limit_mb}MB."
                    )
                },
            )
        mime_type = (image.content_type or "").split(";")[0].strip() or "image/jpeg"
        return base64.b64encode(image.content).decode("ascii"), mime_type


def _probe_suggestion(status_code: int) -> str:
    if status_code == 401:
        return "Invalid API key - verify OPENAI_API_KEY in your environment"
    if status_code == 429:
        return "Rate limit exceeded - please wait before trying again"
    return "API key test failed - check your OpenAI API key and quota"


def _extraction_error(response: httpx.Response, has_api_key: bool) -> MenuImportError:
    """Map a failed vision response onto the import error taxonomy."""
    error_text = response.text
    try:
        error_data = json.loads(error_text)
    except ValueError:
        error_data = {"error": {"message": error_text}}
    error = error_data.get("error") if isinstance(error_data, dict) else None
    error_code = error.get("code") if isinstance(error, dict) else None
    error_message = error.get("message") if isinstance(error, dict) else error

    if response.status_code == 408:
        return MenuImportError(408, {"error": error_message or TIMEOUT_MESSAGE})
    if response.status_code == 429 or error_code == "insufficient_quota":
        return MenuImportError(
            429,
            {
                "error": "API quota exceeded",
                "details": (
                    "Your API key has exceeded its quota. Please check your "
                    "billing and quota limits."
                ),
                "suggestion": (
                    "Verify that OPENAI_API_KEY holds a valid key with "
                    "sufficient quota"
                ),
                "originalError": error_message or error_text,
            },
        )
    _logger.error(
        "Vision API error: status=%s body=%s has_api_key=%s",
        response.status_code,
        error_text,
        has_api_key,
    )
    return MenuImportError(
        500,
        {
            "error": "Failed to analyze image with AI",
            "details": (
                f"Vision API error: {response.status_code} {response.reason_phrase}"
            ),
            "hasApiKey": has_api_key,
            "suggestion": "Verify that OPENAI_API_KEY contains a valid OpenAI API key",
        },
    )
