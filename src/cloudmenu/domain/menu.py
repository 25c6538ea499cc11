"""Models for menus extracted from photographs."""

import re
from collections.abc import Iterator
from decimal import Decimal, InvalidOperation
from typing import Annotated

from pydantic import AliasChoices, BaseModel, Field, PlainSerializer, field_validator

_PRICE_PATTERN = re.compile(r"\d+(?:[.,]\d+)*")
_WHITESPACE = re.compile(r"\s+")

Price = Annotated[
    Decimal, PlainSerializer(float, return_type=float, when_used="json")
]


class MenuItem(BaseModel):
    """Single dish extracted from a menu photo."""

    name: str
    description: str = ""
    price: Price = Decimal("0")
    allergens: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("allergens", "allergenes"),
    )
    vegetarian: bool = False
    vegan: bool = False
    gluten_free: bool = False
    spicy: bool = False
    image_url: str = ""

    @field_validator("description", "image_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("price", mode="before")
    @classmethod
    def _parse_price(cls, value: object) -> object:
        return parse_price(value)

    @field_validator("allergens", mode="before")
    @classmethod
    def _dedupe_allergens(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list | tuple | set):
            return value
        seen: list[str] = []
        for entry in value:
            label = str(entry).strip().lower()
            if label and label not in seen:
                seen.append(label)
        return seen


class MenuCategory(BaseModel):
    """Category of dishes, in the order it appears on the menu."""

    name: str
    description: str = ""
    items: list[MenuItem] = Field(default_factory=list)

    @field_validator("description", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return "" if value is None else value


class MenuExtract(BaseModel):
    """Structured menu returned by the vision model."""

    categories: list[MenuCategory]

    def iter_items(self) -> Iterator[MenuItem]:
        """Yield every item in document order."""
        for category in self.categories:
            yield from category.items

    def clear_images(self) -> None:
        """Reset every item's image URL."""
        for item in self.iter_items():
            item.image_url = ""


def parse_price(value: object) -> Decimal:
    """Coerce prices such as ``15.9`` or ``"15,90 €"`` to a Decimal."""
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, bool):
        raise ValueError("price must be a number")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int | float):
        return Decimal(str(value))
    if isinstance(value, str):
        match = _PRICE_PATTERN.search(_WHITESPACE.sub("", value))
        if match is None:
            raise ValueError(f"unparseable price: {value!r}")
        try:
            return Decimal(_normalize_number(match.group(0)))
        except InvalidOperation as exc:
            raise ValueError(f"unparseable price: {value!r}") from exc
    raise ValueError(f"unsupported price type: {type(value).__name__}")


def _normalize_number(token: str) -> str:
    """Turn ``1.234,50`` or ``1,234.50`` into ``1234.50``.

    The last separator is the decimal mark unless it repeats, in which case
    every separator groups thousands.
    """
    last = max(token.rfind("."), token.rfind(","))
    if last == -1:
        return token
    if token.count(token[last]) > 1:
        return token.replace(".", "").replace(",", "")
    integer = token[:last].replace(".", "").replace(",", "")
    return f"{integer}.{token[last + 1 :]}"
