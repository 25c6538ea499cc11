"""Pydantic models for HTTP request payloads."""

from pydantic import BaseModel, ConfigDict, Field


class ParseMenuImageRequest(BaseModel):
    """Body of a menu photo import request."""

    model_config = ConfigDict(populate_by_name=True)

    image_url: str | None = Field(default=None, alias="imageUrl")
    menu_id: str | None = Field(default=None, alias="menuId")
    import_images: bool = Field(default=True, alias="importImages")


class TranslateMenuRequest(BaseModel):
    """Body of a menu translation request."""

    model_config = ConfigDict(populate_by_name=True)

    menu_id: str | None = Field(default=None, alias="menuId")
    target_language: str | None = Field(default=None, alias="targetLanguage")
    language_name: str | None = Field(default=None, alias="languageName")
