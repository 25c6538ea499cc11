"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from cloudmenu.adapters.image_download_client import HttpxImageDownloader
from cloudmenu.adapters.openai_translation_client import OpenAITranslationClient
from cloudmenu.adapters.openai_vision_client import HttpxVisionClient
from cloudmenu.adapters.supabase_authenticator import SupabaseAuthenticator
from cloudmenu.adapters.supabase_image_storage import SupabaseImageStorage
from cloudmenu.adapters.supabase_menu_repository import SupabaseMenuRepository
from cloudmenu.adapters.unsplash_client import HttpxUnsplashClient
from cloudmenu.config import Settings
from cloudmenu.services.image_rehost import ImageRehostService
from cloudmenu.services.image_search import ImageSearchService
from cloudmenu.services.menu_extraction import MenuExtractionService
from cloudmenu.services.menu_import import MenuImportService
from cloudmenu.services.translations import MenuTranslationService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    menu_import_service: MenuImportService
    translation_service: MenuTranslationService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    vision_client = HttpxVisionClient.create(
        api_key=resolved_settings.openai_api_key,
        base_url=resolved_settings.openai_base_url,
        timeout_seconds=max(
            resolved_settings.vision_http_timeout_seconds,
            resolved_settings.vision_timeout_seconds,
        ),
    )
    unsplash_client = HttpxUnsplashClient.create(
        access_key=resolved_settings.unsplash_access_key,
        base_url=resolved_settings.unsplash_base_url,
        timeout_seconds=resolved_settings.http_timeout_seconds,
    )
    downloader = HttpxImageDownloader.create(
        timeout_seconds=resolved_settings.http_timeout_seconds
    )
    translation_client = OpenAITranslationClient.create(
        resolved_settings.openai_api_key
    )

    extraction_service = MenuExtractionService(
        client=vision_client,
        model=resolved_settings.openai_model,
        max_attempts=resolved_settings.vision_max_attempts,
        timeout_seconds=resolved_settings.vision_timeout_seconds,
        retry_delay_seconds=resolved_settings.vision_retry_delay_seconds,
        max_output_tokens=resolved_settings.vision_max_output_tokens,
    )
    image_search_service = ImageSearchService(
        client=unsplash_client,
        retries=resolved_settings.image_search_retries,
    )
    image_rehost_service = ImageRehostService(
        downloader=downloader,
        storage=SupabaseImageStorage(supabase_client, resolved_settings.storage_bucket),
        folder=resolved_settings.storage_folder,
        max_bytes=resolved_settings.dish_image_max_bytes,
    )
    menu_import_service = MenuImportService(
        extraction_service=extraction_service,
        image_search_service=image_search_service,
        image_rehost_service=image_rehost_service,
        downloader=downloader,
        max_menu_image_bytes=resolved_settings.menu_image_max_bytes,
        item_delay_seconds=resolved_settings.image_import_delay_seconds,
        check_credentials=resolved_settings.vision_key_check,
    )
    translation_service = MenuTranslationService(
        repository=SupabaseMenuRepository(supabase_client),
        authenticator=SupabaseAuthenticator(supabase_client),
        client=translation_client,
        model=resolved_settings.translation_model,
        source_language_name=resolved_settings.source_language_name,
    )

    async def close_resources() -> None:
        await vision_client.close()
        await unsplash_client.close()
        await downloader.close()
        await translation_client.close()

    return AppContainer(
        settings=resolved_settings,
        menu_import_service=menu_import_service,
        translation_service=translation_service,
        close_resources=close_resources,
    )
