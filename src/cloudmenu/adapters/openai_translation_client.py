"""OpenAI Responses API client for menu translation."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from cloudmenu.services.translations import TranslationClient


@dataclass
class OpenAITranslationClient(TranslationClient):
    """Translation client backed by OpenAI structured outputs."""

    client: AsyncOpenAI
    api_key_configured: bool = True

    @classmethod
    def create(cls, api_key: str | None) -> "OpenAITranslationClient":
        """Create an OpenAI translation client."""
        # AsyncOpenAI refuses to build without a key; requests are never sent then.
        return cls(
            client=AsyncOpenAI(api_key=api_key or "unset"),
            api_key_configured=bool(api_key),
        )

    @property
    def has_api_key(self) -> bool:
        return self.api_key_configured

    async def translate(
        self, *, model: str, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        """Call OpenAI Responses API with a strict JSON schema."""
        response = await self.client.responses.create(
            model=model,
            input=[
                {
                    "role": "user",
                    "content": [{"type": "input_text", "text": prompt}],
                }
            ],
            text={
                "format": {
                    "type": "json_schema",
                    "name": "menu_translation",
                    "strict": True,
                    "schema": schema,
                }
            },
            store=False,
        )
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
