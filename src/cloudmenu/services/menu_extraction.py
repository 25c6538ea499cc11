"""Menu extraction through a vision-capable completion API."""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Protocol

import httpx
from pydantic import ValidationError

from cloudmenu.domain.menu import MenuExtract
from cloudmenu.domain.retry import RetryAttempt
from cloudmenu.services.retry import (
    Sleeper,
    is_timeout_error,
    with_timeout,
)

_logger = logging.getLogger(__name__)

_JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

TIMEOUT_MESSAGE = (
    "Request timed out. The image might be too complex or the service is "
    "overloaded."
)

EXTRACTION_PROMPT = """\
You are reading a photograph of a restaurant menu. Extract every dish that is \
visible on it.

Rules:
1. Count the dishes before answering. If the menu lists 23 pizzas, return 23 items.
2. Do not invent subcategories. A pizza menu gets a single "Pizzas" category.
3. Do not regroup dishes by price, speciality or any other criterion.
4. Keep dishes in the exact order they appear, reading top to bottom and left \
to right.

Answer with this JSON object and nothing else:
{
  "categories": [
    {
      "name": "Pizzas",
      "description": "",
      "items": [
        {
          "name": "Dish name",
          "description": "Full description as printed",
          "price": 15.90,
          "allergenes": ["gluten", "dairy"],
          "vegetarian": false,
          "vegan": false,
          "gluten_free": false,
          "spicy": false
        }
      ]
    }
  ]
}

For each dish give the name, the complete description and the exact price. \
Write prices such as "15,90 €" as the number 15.90. Infer allergens from the \
ingredients (flour means gluten, cheese or cream means dairy, and so on). \
Section headings printed on the menu do not create extra categories: put \
everything under one category named after the main type of food. Check that no \
dish is missing before you answer."""


class VisionClient(Protocol):
    """Interface for the raw vision completion endpoint."""

    @property
    def has_api_key(self) -> bool:
        """Return true when an API key is configured."""

    async def create_response(self, payload: dict[str, object]) -> httpx.Response:
        """Send a completion request and return the raw HTTP response."""


class EmptyCompletionError(RuntimeError):
    """The vision API answered without any text."""


class MenuParseError(ValueError):
    """The vision API text did not contain a valid menu."""

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text


@dataclass
class MenuExtractionService:
    """Calls the vision API with bounded retries and parses its answer."""

    client: VisionClient
    model: str
    max_attempts: int = 3
    timeout_seconds: float = 60.0
    retry_delay_seconds: float = 2.0
    max_output_tokens: int = 4096
    sleep: Sleeper = asyncio.sleep

    def build_payload(self, image_base64: str, mime_type: str) -> dict[str, object]:
        """Build the multimodal request body for one menu photo."""
        return {
            "model": self.model,
            "max_output_tokens": self.max_output_tokens,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": EXTRACTION_PROMPT},
                        {
                            "type": "input_image",
                            "image_url": f"data:{mime_type};base64,{image_base64}",
                        },
                    ],
                }
            ],
        }

    async def check_credentials(self) -> httpx.Response:
        """Send a minimal request to verify the API key before extraction."""
        return await self.client.create_response(
            {"model": self.model, "input": "Hello", "max_output_tokens": 16}
        )

    async def request_extraction(
        self, image_base64: str, mime_type: str
    ) -> httpx.Response:
        """Return the upstream response, retrying on rate limits and timeouts.

        Up to ``max_attempts`` calls are made under a ``timeout_seconds``
        deadline. A 429 with attempts left sleeps ``retry_delay_seconds``,
        doubled after every rate-limited attempt. A timeout on the last
        attempt yields a synthetic 408 response. A 429 on the last attempt
        leads to one final call without the deadline; its response is
        returned whatever the status. Other statuses are returned as-is and
        non-timeout transport errors propagate.
        """
        payload = self.build_payload(image_base64, mime_type)
        delay = self.retry_delay_seconds
        for attempt_index in range(self.max_attempts + 1):
            attempt = RetryAttempt(
                attempt_index=attempt_index,
                max_attempts=self.max_attempts,
                base_delay_seconds=self.retry_delay_seconds,
                elapsed_budget_seconds=(
                    None if attempt_index >= self.max_attempts else self.timeout_seconds
                ),
            )
            if attempt.is_fallback:
                _logger.warning(
                    "Vision API still rate limited after %s attempts, "
                    "sending a final request",
                    self.max_attempts,
                )
            else:
                _logger.info(
                    "Vision API attempt %s/%s", attempt.number, self.max_attempts
                )
            try:
                response = await with_timeout(
                    self.client.create_response(payload),
                    attempt.elapsed_budget_seconds,
                )
            except Exception as exc:
                if attempt.is_fallback or not is_timeout_error(exc):
                    raise
                _logger.error(
                    "Vision API request timed out (attempt %s/%s)",
                    attempt.number,
                    self.max_attempts,
                )
                if attempt.is_last:
                    return httpx.Response(408, json={"error": TIMEOUT_MESSAGE})
                continue

            _logger.info("Vision API response status: %s", response.status_code)
            if attempt.is_fallback or response.status_code != 429:
                return response
            if not attempt.is_last:
                _logger.warning(
                    "Vision API rate limited, retrying in %.1fs (attempt %s/%s)",
                    delay,
                    attempt.number,
                    self.max_attempts,
                )
                await self.sleep(delay)
                delay *= 2
        raise RuntimeError("Vision retry loop ended without a response")

    def parse_response(self, response: httpx.Response) -> MenuExtract:
        """Parse the menu JSON embedded in a successful response."""
        try:
            body = response.json()
        except ValueError as exc:
            raise MenuParseError(
                "Vision API returned invalid JSON", response.text
            ) from exc
        content = extract_output_text(body) if isinstance(body, dict) else ""
        if not content:
            raise EmptyCompletionError("No content received from AI")
        return parse_menu_text(content)


def extract_output_text(body: dict[str, object]) -> str:
    """Collect the text parts of a Responses API payload."""
    direct = body.get("output_text")
    if isinstance(direct, str) and direct:
        return direct
    parts: list[str] = []
    output = body.get("output")
    if not isinstance(output, list):
        return ""
    for block in output:
        if not isinstance(block, dict):
            continue
        for content in block.get("content") or []:
            if (
                isinstance(content, dict)
                and content.get("type") == "output_text"
                and isinstance(content.get("text"), str)
            ):
                parts.append(content["text"])
    return "".join(parts)


def parse_menu_text(content: str) -> MenuExtract:
    """Validate the first-to-last brace span of ``content`` as a menu."""
    match = _JSON_OBJECT_PATTERN.search(content)
    if match is None:
        raise MenuParseError("No JSON found in response", content)
    try:
        return MenuExtract.model_validate_json(match.group(0))
    except ValidationError as exc:
        raise MenuParseError(f"Invalid menu JSON: {exc}", content) from exc
