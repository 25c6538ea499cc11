"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cloudmenu.api.models import ParseMenuImageRequest, TranslateMenuRequest
from cloudmenu.app_logging import configure_logging
from cloudmenu.config import parse_allowed_origins
from cloudmenu.containers import AppContainer
from cloudmenu.domain.translations import TranslationSummary
from cloudmenu.services.menu_import import MenuImportError
from cloudmenu.services.translations import TranslationError


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_allowed_origins(container.settings.cors_allow_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    @app.exception_handler(RequestValidationError)
    async def invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse({"error": "Invalid request body"}, status_code=400)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/parse-menu-image")
    async def parse_menu_image(
        body: ParseMenuImageRequest, request: Request
    ) -> JSONResponse:
        """Extract a menu from a photo and attach dish images."""
        state_container: AppContainer = request.app.state.container
        if not body.image_url or not body.menu_id:
            return JSONResponse(
                {"error": "Image URL and Menu ID are required"}, status_code=400
            )
        try:
            menu = await state_container.menu_import_service.import_menu(
                image_url=body.image_url,
                menu_id=body.menu_id,
                import_images=body.import_images,
            )
        except MenuImportError as exc:
            logger.warning(
                "Menu import failed with status %s: %s", exc.status_code, exc
            )
            return JSONResponse(exc.payload, status_code=exc.status_code)
        except Exception as exc:
            logger.exception("Menu import crashed", extra={"menu_id": body.menu_id})
            return JSONResponse(
                _internal_error(state_container, exc, "Internal server error"),
                status_code=500,
            )
        return JSONResponse({"success": True, "data": menu.model_dump(mode="json")})

    @app.post("/translate-menu")
    async def translate_menu(
        body: TranslateMenuRequest,
        request: Request,
        authorization: str | None = Header(default=None),
    ) -> JSONResponse:
        """Translate a stored menu into another language."""
        state_container: AppContainer = request.app.state.container
        if not body.menu_id or not body.target_language or not body.language_name:
            return JSONResponse(
                {"error": "Menu ID, target language and language name are required"},
                status_code=400,
            )
        try:
            summary = await state_container.translation_service.translate_menu(
                access_token=_bearer_token(authorization),
                menu_id=body.menu_id,
                target_language=body.target_language,
                language_name=body.language_name,
            )
        except TranslationError as exc:
            logger.warning(
                "Translation failed with status %s: %s", exc.status_code, exc
            )
            return JSONResponse({"error": exc.message}, status_code=exc.status_code)
        except Exception as exc:
            logger.exception("Translation crashed", extra={"menu_id": body.menu_id})
            return JSONResponse(
                _internal_error(state_container, exc, "Translation failed"),
                status_code=500,
            )
        return JSONResponse(_format_translation(summary))

    return app


def _bearer_token(authorization: str | None) -> str | None:
    """Strip the Bearer scheme from an Authorization header."""
    if not authorization:
        return None
    token = authorization.removeprefix("Bearer ").strip()
    return token or None


def _format_translation(summary: TranslationSummary) -> dict[str, object]:
    if summary.already_exists:
        return {"success": True, "message": "Language already exists"}
    return {
        "success": True,
        "message": f"Translated to {summary.language_name}",
        "menuTitle": summary.menu_title,
        "categoriesCount": summary.categories_count,
        "itemsCount": summary.items_count,
    }


def _internal_error(
    state_container: AppContainer, exc: Exception, message: str
) -> dict[str, object]:
    """Return an error body, with exception details in local environments."""
    payload: dict[str, object] = {"error": message}
    if state_container.settings.environment == "local":
        detail = f"{type(exc).__name__}: {exc}".strip()
        if detail:
            payload["debug"] = detail
    return payload
