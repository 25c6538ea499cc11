"""Shared test fixtures."""

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx
import pytest

from cloudmenu.config import Settings
from cloudmenu.containers import AppContainer
from cloudmenu.domain.images import DownloadedImage
from cloudmenu.domain.translations import MenuRecord, TranslationEntry
from cloudmenu.services.image_rehost import (
    ImageDownloader,
    ImageRehostService,
    ImageStorage,
)
from cloudmenu.services.image_search import ImageSearchService, PhotoSearchClient
from cloudmenu.services.menu_extraction import MenuExtractionService, VisionClient
from cloudmenu.services.menu_import import MenuImportService
from cloudmenu.services.translations import (
    MenuTranslationRepository,
    MenuTranslationService,
    TranslationClient,
    UserAuthenticator,
)

MENU_PHOTO_URL = "https://cdn.example.com/menus/pizzeria.jpg"

MENU_JSON = {
    "categories": [
        {
            "name": "Pizzas",
            "description": "",
            "items": [
                {
                    "name": "Pizza Margherita",
                    "description": "Tomato, mozzarella, basil",
                    "price": 12.5,
                    "allergenes": ["gluten", "dairy"],
                    "vegetarian": True,
                    "vegan": False,
                    "gluten_free": False,
                    "spicy": False,
                },
                {
                    "name": "Diavola",
                    "description": "Spicy salami",
                    "price": "14,90 €",
                    "allergenes": ["gluten", "dairy"],
                    "vegetarian": False,
                    "vegan": False,
                    "gluten_free": False,
                    "spicy": True,
                },
            ],
        },
        {
            "name": "Desserts",
            "description": "Homemade",
            "items": [
                {
                    "name": "Tiramisu",
                    "description": "Mascarpone, coffee",
                    "price": 7,
                    "allergenes": ["dairy", "eggs"],
                    "vegetarian": True,
                    "vegan": False,
                    "gluten_free": False,
                    "spicy": False,
                }
            ],
        },
    ]
}


def vision_success(text: str | None = None) -> httpx.Response:
    """Build a Responses API payload wrapping ``text``."""
    body_text = text if text is not None else json.dumps(MENU_JSON)
    return httpx.Response(
        200,
        json={
            "id": "resp_1",
            "output": [
                {
                    "type": "message",
                    "role": "assistant",
                    "content": [{"type": "output_text", "text": body_text}],
                }
            ],
        },
    )


def search_response(status_code: int, payload: dict | None = None) -> httpx.Response:
    """Build a search response bound to a request."""
    request = httpx.Request("GET", "https://api.unsplash.test/search/photos")
    if payload is None:
        return httpx.Response(status_code, request=request)
    return httpx.Response(status_code, json=payload, request=request)


def unsplash_result(
    url: str,
    description: str | None = None,
    alt_description: str | None = None,
    tags: list[str] | None = None,
) -> dict[str, object]:
    return {
        "description": description,
        "alt_description": alt_description,
        "tags": [{"title": tag} for tag in tags or []],
        "urls": {"regular": url},
    }


@dataclass
class RecordingSleeper:
    """Async sleep replacement that records requested delays."""

    delays: list[float] = field(default_factory=list)

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


VisionOutcome = httpx.Response | BaseException | Callable[[], object]


@dataclass
class FakeVisionClient(VisionClient):
    """Vision client that replays queued outcomes."""

    outcomes: list[VisionOutcome] = field(default_factory=list)
    probe_response: httpx.Response | BaseException | None = None
    api_key: str | None = "openai-key"
    payloads: list[dict[str, object]] = field(default_factory=list)

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    @property
    def extraction_calls(self) -> int:
        return sum(1 for payload in self.payloads if payload.get("input") != "Hello")

    async def create_response(self, payload: dict[str, object]) -> httpx.Response:
        self.payloads.append(payload)
        if payload.get("input") == "Hello":
            if isinstance(self.probe_response, BaseException):
                raise self.probe_response
            return self.probe_response or httpx.Response(200, json={"output": []})
        outcome = self.outcomes.pop(0) if self.outcomes else vision_success()
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            result = outcome()
            if asyncio.iscoroutine(result):
                return await result
            return result
        return outcome


async def hang_forever() -> httpx.Response:
    await asyncio.sleep(60)
    return httpx.Response(200)


@dataclass
class FakePhotoSearchClient(PhotoSearchClient):
    """Photo search client that replays queued responses."""

    responses: list[httpx.Response | BaseException] = field(default_factory=list)
    access_key: str | None = "unsplash-key"
    queries: list[str] = field(default_factory=list)

    @property
    def has_access_key(self) -> bool:
        return bool(self.access_key)

    async def search_photos(self, query: str, per_page: int = 10) -> httpx.Response:
        self.queries.append(query)
        outcome = (
            self.responses.pop(0)
            if self.responses
            else search_response(200, {"results": []})
        )
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@dataclass
class FakeImageDownloader(ImageDownloader):
    """Downloader serving in-memory images keyed by URL."""

    images: dict[str, DownloadedImage | BaseException] = field(default_factory=dict)
    requested: list[str] = field(default_factory=list)

    async def download(self, url: str) -> DownloadedImage:
        self.requested.append(url)
        image = self.images.get(url)
        if image is None:
            request = httpx.Request("GET", url)
            raise httpx.HTTPStatusError(
                "not found", request=request, response=httpx.Response(404)
            )
        if isinstance(image, BaseException):
            raise image
        return image


@dataclass
class InMemoryImageStorage(ImageStorage):
    """Storage bucket that keeps uploads in memory."""

    uploads: dict[str, tuple[bytes, str]] = field(default_factory=dict)
    fail: bool = False

    def upload(self, path: str, content: bytes, content_type: str) -> str:
        if self.fail:
            raise RuntimeError("storage unavailable")
        self.uploads[path] = (content, content_type)
        return f"https://storage.test/public/cloudmenu/{path}"


@dataclass
class FakeTranslationClient(TranslationClient):
    """Translation client that uppercases names."""

    api_key_configured: bool = True
    prompts: list[str] = field(default_factory=list)
    extra_entries: list[dict[str, str]] = field(default_factory=list)

    @property
    def has_api_key(self) -> bool:
        return self.api_key_configured

    async def translate(
        self, *, model: str, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        self.prompts.append(prompt)
        source = json.loads(prompt[prompt.index("[") :])
        entries = [
            {
                "type": entry["type"],
                "id": entry["id"],
                "name": entry["name"].upper(),
                "description": entry["description"].upper(),
            }
            for entry in source
        ]
        return {"entries": entries + self.extra_entries}


@dataclass
class FakeAuthenticator(UserAuthenticator):
    """Authenticator with a fixed token table."""

    tokens: dict[str, str] = field(default_factory=lambda: {"good-token": "user-1"})

    def get_user_id(self, access_token: str) -> str | None:
        return self.tokens.get(access_token)


@dataclass
class InMemoryMenuRepository(MenuTranslationRepository):
    """In-memory menu translation repository for tests."""

    menus: dict[str, MenuRecord] = field(default_factory=dict)
    languages: dict[str, dict[str, str]] = field(default_factory=dict)
    categories: dict[str, list[TranslationEntry]] = field(default_factory=dict)
    items: dict[str, list[TranslationEntry]] = field(default_factory=dict)
    category_translations: list[tuple[str, TranslationEntry]] = field(
        default_factory=list
    )
    item_translations: list[tuple[str, TranslationEntry]] = field(
        default_factory=list
    )

    def get_menu(self, menu_id: str, user_id: str) -> MenuRecord | None:
        menu = self.menus.get(menu_id)
        if menu is None or menu.user_id != user_id:
            return None
        return menu

    def has_language(self, menu_id: str, language_code: str) -> bool:
        return language_code in self.languages.get(menu_id, {})

    def add_language(self, menu_id: str, language_code: str, menu_title: str) -> None:
        self.languages.setdefault(menu_id, {})[language_code] = menu_title

    def list_categories(self, menu_id: str) -> list[TranslationEntry]:
        return list(self.categories.get(menu_id, []))

    def list_items(self, category_ids: list[str]) -> list[TranslationEntry]:
        return [
            item
            for category_id in category_ids
            for item in self.items.get(category_id, [])
        ]

    def insert_category_translations(
        self, language_code: str, entries: list[TranslationEntry]
    ) -> None:
        self.category_translations.extend(
            (language_code, entry) for entry in entries
        )

    def insert_item_translations(
        self, language_code: str, entries: list[TranslationEntry]
    ) -> None:
        self.item_translations.extend((language_code, entry) for entry in entries)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        openai_api_key="openai-key",
        unsplash_access_key="unsplash-key",
        environment="local",
    )


@pytest.fixture
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture
def vision_client() -> FakeVisionClient:
    return FakeVisionClient()


@pytest.fixture
def search_client() -> FakePhotoSearchClient:
    return FakePhotoSearchClient()


@pytest.fixture
def downloader() -> FakeImageDownloader:
    return FakeImageDownloader(
        images={
            MENU_PHOTO_URL: DownloadedImage(
                content=b"\xff\xd8\xffmenu", content_type="image/jpeg"
            )
        }
    )


@pytest.fixture
def storage() -> InMemoryImageStorage:
    return InMemoryImageStorage()


@pytest.fixture
def menu_repository() -> InMemoryMenuRepository:
    repository = InMemoryMenuRepository()
    repository.menus["menu-1"] = MenuRecord(
        id="menu-1", user_id="user-1", title="La Carte", default_language="fr"
    )
    repository.categories["menu-1"] = [
        TranslationEntry(type="category", id="cat-1", name="Entrées"),
        TranslationEntry(type="category", id="cat-2", name="Desserts"),
    ]
    repository.items["cat-1"] = [
        TranslationEntry(
            type="item", id="item-1", name="Soupe", description="À l'oignon"
        )
    ]
    repository.items["cat-2"] = [
        TranslationEntry(type="item", id="item-2", name="Tarte", description="")
    ]
    return repository


@pytest.fixture
def translation_client() -> FakeTranslationClient:
    return FakeTranslationClient()


@pytest.fixture
def menu_import_service(
    vision_client: FakeVisionClient,
    search_client: FakePhotoSearchClient,
    downloader: FakeImageDownloader,
    storage: InMemoryImageStorage,
    sleeper: RecordingSleeper,
) -> MenuImportService:
    return MenuImportService(
        extraction_service=MenuExtractionService(
            client=vision_client, model="gpt-4.1", sleep=sleeper
        ),
        image_search_service=ImageSearchService(client=search_client, sleep=sleeper),
        image_rehost_service=ImageRehostService(downloader=downloader, storage=storage),
        downloader=downloader,
        sleep=sleeper,
    )


@pytest.fixture
def container(
    settings: Settings,
    menu_import_service: MenuImportService,
    menu_repository: InMemoryMenuRepository,
    translation_client: FakeTranslationClient,
) -> AppContainer:
    translation_service = MenuTranslationService(
        repository=menu_repository,
        authenticator=FakeAuthenticator(),
        client=translation_client,
        model=settings.translation_model,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        menu_import_service=menu_import_service,
        translation_service=translation_service,
        close_resources=close_resources,
    )
