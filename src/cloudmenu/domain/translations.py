"""Menu translation models."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, Field


class TranslationEntry(BaseModel):
    """Translatable text of a menu, category or item."""

    type: Literal["menu", "category", "item"]
    id: str
    name: str
    description: str = ""


class TranslationBatch(BaseModel):
    """Structured output returned by the translation model."""

    entries: list[TranslationEntry] = Field(default_factory=list)


@dataclass(frozen=True)
class MenuRecord:
    """Menu row owned by a user."""

    id: str
    user_id: str
    title: str
    default_language: str | None


@dataclass(frozen=True)
class TranslationSummary:
    """Outcome of translating a menu into one language."""

    language_name: str
    menu_title: str | None = None
    categories_count: int = 0
    items_count: int = 0
    already_exists: bool = False
