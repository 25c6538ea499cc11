"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

_MIB = 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1"
    openai_base_url: str = "https://api.openai.com/v1"
    translation_model: str = "gpt-4.1-mini"
    unsplash_access_key: str | None = None
    unsplash_base_url: str = "https://api.unsplash.com"
    storage_bucket: str = "cloudmenu"
    storage_folder: str = "menu-items"
    vision_max_attempts: int = 3
    vision_timeout_seconds: float = 60.0
    vision_retry_delay_seconds: float = 2.0
    vision_key_check: bool = True
    vision_max_output_tokens: int = 4096
    vision_http_timeout_seconds: float = 120.0
    image_search_retries: int = 3
    image_import_delay_seconds: float = 0.5
    dish_image_max_bytes: int = 5 * _MIB
    menu_image_max_bytes: int = 10 * _MIB
    http_timeout_seconds: float = 20.0
    source_language_name: str = "French"
    cors_allow_origins: str = "*"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_allowed_origins(raw: str | None) -> list[str]:
    """Parse the CORS origin list from env."""
    if raw is None:
        return ["*"]
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return ["*"]
    origins = [chunk.strip() for chunk in cleaned.split(",")]
    return [origin for origin in origins if origin] or ["*"]
