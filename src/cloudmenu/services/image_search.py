"""Food photo lookup for dish names."""

import asyncio
import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import httpx

from cloudmenu.domain.images import ImageCandidate
from cloudmenu.services.retry import (
    Sleeper,
    exponential_delay,
    linear_delay,
    status_code_from_exception,
)

_logger = logging.getLogger(__name__)

QUERY_KEYWORDS = "food dish plate meal cuisine cooking"

FOOD_KEYWORDS = (
    "food",
    "dish",
    "plate",
    "meal",
    "cuisine",
    "cooking",
    "recipe",
    "eat",
    "delicious",
    "tasty",
)

EXCLUDED_KEYWORDS = (
    "restaurant",
    "storefront",
    "building",
    "exterior",
    "sign",
    "logo",
    "interior",
    "dining room",
    "table",
    "chair",
    "people",
    "person",
    "chef",
    "kitchen staff",
    "waiter",
)

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


class PhotoSearchClient(Protocol):
    """Interface for a keyword photo search API."""

    @property
    def has_access_key(self) -> bool:
        """Return true when search credentials are configured."""

    async def search_photos(self, query: str, per_page: int = 10) -> httpx.Response:
        """Run a photo search and return the raw HTTP response."""


@dataclass
class ImageSearchService:
    """Finds a food photo for a dish, retrying on rate limits and errors."""

    client: PhotoSearchClient
    retries: int = 3
    per_page: int = 10
    rate_limit_delay_seconds: float = 1.0
    error_delay_seconds: float = 1.0
    sleep: Sleeper = asyncio.sleep

    async def find_image(
        self, dish_name: str, retries: int | None = None
    ) -> str | None:
        """Return the URL of the best matching photo, or ``None``."""
        if not self.client.has_access_key:
            _logger.warning("Unsplash access key not configured, skipping image search")
            return None

        query = build_search_query(dish_name)
        budget = self.retries if retries is None else retries
        for attempt in range(budget):
            try:
                _logger.info(
                    "Searching image for %r (attempt %s/%s)",
                    dish_name,
                    attempt + 1,
                    budget,
                )
                response = await self.client.search_photos(
                    query, per_page=self.per_page
                )
                if response.status_code == 429:
                    delay = exponential_delay(self.rate_limit_delay_seconds, attempt)
                    _logger.warning(
                        "Image search rate limited, waiting %.1fs before retry", delay
                    )
                    await self.sleep(delay)
                    continue
                response.raise_for_status()
                candidates = parse_candidates(response.json())
            except Exception as exc:
                _logger.warning(
                    "Image search for %r failed (attempt %s/%s, status=%s): %s",
                    dish_name,
                    attempt + 1,
                    budget,
                    status_code_from_exception(exc),
                    exc,
                )
                if attempt == budget - 1:
                    return None
                await self.sleep(linear_delay(self.error_delay_seconds, attempt))
                continue

            selected = select_candidate(candidates)
            if selected is None:
                _logger.info("No images found for %r", dish_name)
                return None
            _logger.info(
                "Found image for %r: %s (alt: %s)",
                dish_name,
                selected.url,
                selected.alt_description or "n/a",
            )
            return selected.url
        return None


def build_search_query(dish_name: str) -> str:
    """Normalize a dish name and append food keywords."""
    cleaned = _NON_WORD.sub(" ", dish_name.lower())
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    return f"{cleaned} {QUERY_KEYWORDS}"


def is_food_photo(text: str) -> bool:
    """Return true when text has a food keyword and no excluded keyword."""
    lowered = text.lower()
    if not any(keyword in lowered for keyword in FOOD_KEYWORDS):
        return False
    return not any(keyword in lowered for keyword in EXCLUDED_KEYWORDS)


def parse_candidates(payload: dict[str, object]) -> list[ImageCandidate]:
    """Build candidates from a search payload, keeping result order."""
    results = payload.get("results") or []
    candidates: list[ImageCandidate] = []
    for result in results:
        url = (result.get("urls") or {}).get("regular")
        if not url:
            continue
        tags = " ".join(
            str(tag.get("title", "")) for tag in result.get("tags") or []
        )
        text = " ".join(
            [
                result.get("description") or "",
                result.get("alt_description") or "",
                tags,
            ]
        )
        candidates.append(
            ImageCandidate(
                url=url,
                relevant=is_food_photo(text),
                alt_description=result.get("alt_description"),
            )
        )
    return candidates


def select_candidate(candidates: Sequence[ImageCandidate]) -> ImageCandidate | None:
    """Pick the first relevant candidate, else the first one."""
    if not candidates:
        return None
    for candidate in candidates:
        if candidate.relevant:
            return candidate
    return candidates[0]
