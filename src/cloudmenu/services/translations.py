"""Menu translation with an LLM and persistence of the results."""

import json
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from cloudmenu.domain.translations import (
    MenuRecord,
    TranslationBatch,
    TranslationEntry,
    TranslationSummary,
)

_logger = logging.getLogger(__name__)

TRANSLATION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "entries": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "type": {"type": "string", "enum": ["menu", "category", "item"]},
                    "id": {"type": "string"},
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                },
                "required": ["type", "id", "name", "description"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["entries"],
    "additionalProperties": False,
}


class TranslationClient(Protocol):
    """Interface for LLM structured translation."""

    @property
    def has_api_key(self) -> bool:
        """Return true when an API key is configured."""

    async def translate(
        self, *, model: str, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        """Return structured translation data."""


class UserAuthenticator(Protocol):
    """Resolves the user behind an access token."""

    def get_user_id(self, access_token: str) -> str | None:
        """Return the user id for a valid token, else ``None``."""


class MenuTranslationRepository(Protocol):
    """Persistence interface for menus and their translations."""

    def get_menu(self, menu_id: str, user_id: str) -> MenuRecord | None:
        """Return the menu if it belongs to the user."""

    def has_language(self, menu_id: str, language_code: str) -> bool:
        """Return true when the menu already has the language."""

    def add_language(self, menu_id: str, language_code: str, menu_title: str) -> None:
        """Register a language for the menu with its translated title."""

    def list_categories(self, menu_id: str) -> list[TranslationEntry]:
        """Return the menu's categories as translatable entries."""

    def list_items(self, category_ids: list[str]) -> list[TranslationEntry]:
        """Return the items of the given categories as translatable entries."""

    def insert_category_translations(
        self, language_code: str, entries: list[TranslationEntry]
    ) -> None:
        """Store translated category names and descriptions."""

    def insert_item_translations(
        self, language_code: str, entries: list[TranslationEntry]
    ) -> None:
        """Store translated item names and descriptions."""


class TranslationError(Exception):
    """Translation failure with the HTTP status to report."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass
class MenuTranslationService:
    """Translates a stored menu into another language."""

    repository: MenuTranslationRepository
    authenticator: UserAuthenticator
    client: TranslationClient
    model: str
    source_language_name: str = "French"

    async def translate_menu(
        self,
        access_token: str | None,
        menu_id: str,
        target_language: str,
        language_name: str,
    ) -> TranslationSummary:
        """Translate the menu title, categories and items, then store them."""
        if not access_token:
            raise TranslationError(401, "No authorization header")
        user_id = self.authenticator.get_user_id(access_token)
        if user_id is None:
            raise TranslationError(401, "Unauthorized")

        menu = self.repository.get_menu(menu_id, user_id)
        if menu is None:
            raise TranslationError(404, "Menu not found or access denied")
        if self.repository.has_language(menu_id, target_language):
            return TranslationSummary(language_name=language_name, already_exists=True)
        if not self.client.has_api_key:
            raise TranslationError(500, "OPENAI_API_KEY is not configured")

        categories = self.repository.list_categories(menu_id)
        items = self.repository.list_items([category.id for category in categories])
        source = [
            TranslationEntry(type="menu", id=menu.id, name=menu.title),
            *categories,
            *items,
        ]
        translated = await self._translate(source, language_name)

        menu_entry = translated.get(("menu", menu.id))
        menu_title = _clean_title(menu_entry.name) if menu_entry else menu.title
        self.repository.add_language(menu_id, target_language, menu_title)

        category_translations = _pick(translated, "category", categories)
        item_translations = _pick(translated, "item", items)
        if category_translations:
            self.repository.insert_category_translations(
                target_language, category_translations
            )
        if item_translations:
            self.repository.insert_item_translations(target_language, item_translations)

        _logger.info(
            "Translated menu %s to %s: %s categories, %s items",
            menu_id,
            target_language,
            len(category_translations),
            len(item_translations),
        )
        return TranslationSummary(
            language_name=language_name,
            menu_title=menu_title,
            categories_count=len(category_translations),
            items_count=len(item_translations),
        )

    async def _translate(
        self, entries: list[TranslationEntry], language_name: str
    ) -> dict[tuple[str, str], TranslationEntry]:
        prompt = (
            f"Translate the following restaurant menu texts from "
            f"{self.source_language_name} to {language_name}. Keep the 'type' and "
            f"'id' fields unchanged and translate 'name' and 'description'. Keep "
            f"culinary terms authentic when appropriate. Return every entry.\n\n"
            f"{json.dumps([entry.model_dump() for entry in entries], indent=2)}"
        )
        raw = await self.client.translate(
            model=self.model, prompt=prompt, schema=TRANSLATION_SCHEMA
        )
        try:
            batch = TranslationBatch.model_validate(raw)
        except ValidationError as exc:
            raise TranslationError(500, "Translation response was malformed") from exc
        return {(entry.type, entry.id): entry for entry in batch.entries}


def _pick(
    translated: dict[tuple[str, str], TranslationEntry],
    entry_type: str,
    sources: list[TranslationEntry],
) -> list[TranslationEntry]:
    """Return translations for known source ids, in source order."""
    picked: list[TranslationEntry] = []
    for source in sources:
        entry = translated.get((entry_type, source.id))
        if entry is not None:
            picked.append(entry)
    return picked


def _clean_title(title: str) -> str:
    return title.replace('"', "").replace("'", "").strip()
