# src/services/tma_bff/app.py
"""
FastAPI приложение TMA BFF.

Backend for Frontend для Telegram Mini App ресторанного каталога поверх Saleor.
Все endpoints, кроме /health, требуют валидный заголовок X-Telegram-Init-Data.

Endpoints:
- GET /api/v1/tma/me - проверенная личность пользователя
- GET /api/v1/tma/restaurants - список ресторанов (?search=)
- GET /api/v1/tma/restaurants/{restaurant_id}/categories - разделы меню
- GET /api/v1/tma/restaurants/{restaurant_id}/categories/{category_id}/dishes - блюда
- POST /api/v1/tma/orders - оформить заказ
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Annotated, Any

import httpx
from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.common.constants import INIT_DATA_HEADER
from src.common.exceptions import (
    AuthError,
    ExternalError,
    MalformedFieldError,
    NotFoundError,
    ValidationError,
)
from src.common.logger import log_debug, log_error, log_info, setup_logging
from src.config import Settings, get_settings
from src.services.tma_bff.dependencies import (
    build_saleor_client,
    build_tma_service,
    cancel_on_disconnect,
    get_app_settings,
    get_tma_service,
)
from src.services.tma_bff.service import TmaService
from src.services.tma_bff.telegram_auth import Identity, verify_init_data
from src.shared.models.catalog import Category, Dish, Restaurant
from src.shared.models.common import ErrorResponse, HealthStatus
from src.shared.models.order import PlaceOrderInput, PlaceOrderResult

SERVICE_NAME = "tma_bff"


# === AUTH DEPENDENCY ===

async def get_current_user(
    settings: Annotated[Settings, Depends(get_app_settings)],
    x_telegram_init_data: Annotated[str | None, Header(alias=INIT_DATA_HEADER)] = None,
) -> Identity:
    """
    Валидировать initData из заголовка X-Telegram-Init-Data.

    Отсутствие заголовка — такой же 401, как и неверная подпись.
    """
    if not x_telegram_init_data:
        raise MalformedFieldError("missing init data header")

    return verify_init_data(
        x_telegram_init_data,
        settings.telegram.BOT_TOKEN,
        max_age_seconds=settings.telegram.INIT_DATA_MAX_AGE,
    )


# === ERROR HANDLERS ===

def _error(status_code: int, error_code: str, message: str) -> JSONResponse:
    body = ErrorResponse(error_code=error_code, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    # Подвид ошибки клиенту не сообщаем
    await log_debug(
        "initData отклонены",
        extra={"reason": type(exc).__name__, "detail": str(exc), "path": request.url.path},
    )
    return _error(401, "unauthenticated", "unauthenticated")


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error(400, "validation_error", str(exc))


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return _error(404, "not_found", str(exc))


async def external_error_handler(request: Request, exc: ExternalError) -> JSONResponse:
    await log_error(
        "Ошибка Saleor",
        extra={"operation": exc.operation, "detail": exc.message, "path": request.url.path},
    )
    return _error(502, "external_error", str(exc))


# === LIFESPAN ===

def _make_lifespan(transport: httpx.AsyncBaseTransport | None):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Жизненный цикл приложения."""
        settings: Settings = app.state.settings
        setup_logging(settings.logging)

        missing = settings.missing_required()
        if missing:
            await log_error("Не заданы обязательные параметры", extra={"missing": missing})
            raise RuntimeError(f"missing required configuration: {', '.join(missing)}")

        client = build_saleor_client(settings, transport=transport)
        app.state.saleor_client = client
        app.state.tma_service = build_tma_service(settings, client)

        await log_info(
            "TMA BFF запущен",
            extra={
                "environment": settings.system.ENVIRONMENT,
                "saleor_api_url": settings.saleor.API_URL,
                "root_category": settings.catalog.RESTAURANT_ROOT_CATEGORY_ID or None,
            },
        )

        yield

        app.state.tma_service = None
        await client.close()
        await log_info("TMA BFF остановлен")

    return lifespan


# === APP ===

def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """
    Собрать приложение.

    Args:
        settings: Настройки; по умолчанию get_settings()
        transport: Транспорт httpx для клиента Saleor (в тестах MockTransport)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="TMA BFF",
        description="Backend for Frontend для Telegram Mini App. Каталог ресторанов и заказы в Saleor.",
        version=settings.system.VERSION,
        lifespan=_make_lifespan(transport),
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings

    # CORS для Mini App
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.deployment.CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AuthError, auth_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(ExternalError, external_error_handler)

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    version = app.version

    # === HEALTH CHECK ===

    @app.get("/health", response_model=HealthStatus, tags=["Health"])
    async def health_check() -> HealthStatus:
        """Проверка здоровья сервиса."""
        return HealthStatus(status="healthy", service=SERVICE_NAME, version=version)

    # === ME ===

    @app.get("/api/v1/tma/me", tags=["Auth"])
    async def get_me(
        user: Annotated[Identity, Depends(get_current_user)],
    ) -> dict[str, Any]:
        """Проверенная личность пользователя из initData."""
        return {
            "user_id": user.user_id,
            "display_name": user.display_name,
            "username": user.username,
            "locale": user.locale,
            "auth_date": user.auth_date.isoformat(),
        }

    # === CATALOG ===

    @app.get("/api/v1/tma/restaurants", response_model=list[Restaurant], tags=["Catalog"])
    async def list_restaurants(
        request: Request,
        user: Annotated[Identity, Depends(get_current_user)],
        service: Annotated[TmaService, Depends(get_tma_service)],
        search: str | None = Query(default=None, max_length=200),
    ) -> list[Restaurant]:
        """Список ресторанов, с необязательным поиском по названию."""
        return await cancel_on_disconnect(request, service.list_restaurants(search))

    @app.get(
        "/api/v1/tma/restaurants/{restaurant_id}/categories",
        response_model=list[Category],
        tags=["Catalog"],
    )
    async def list_categories(
        restaurant_id: str,
        request: Request,
        user: Annotated[Identity, Depends(get_current_user)],
        service: Annotated[TmaService, Depends(get_tma_service)],
    ) -> list[Category]:
        """Разделы меню ресторана."""
        return await cancel_on_disconnect(request, service.list_categories(restaurant_id))

    @app.get(
        "/api/v1/tma/restaurants/{restaurant_id}/categories/{category_id}/dishes",
        response_model=list[Dish],
        tags=["Catalog"],
    )
    async def list_dishes(
        restaurant_id: str,
        category_id: str,
        request: Request,
        user: Annotated[Identity, Depends(get_current_user)],
        service: Annotated[TmaService, Depends(get_tma_service)],
    ) -> list[Dish]:
        """Блюда раздела. Раздел должен принадлежать ресторану."""
        return await cancel_on_disconnect(
            request, service.list_dishes(restaurant_id, category_id)
        )

    # === ORDERS ===

    @app.post("/api/v1/tma/orders", response_model=PlaceOrderResult, tags=["Orders"])
    async def place_order(
        body: PlaceOrderInput,
        request: Request,
        user: Annotated[Identity, Depends(get_current_user)],
        service: Annotated[TmaService, Depends(get_tma_service)],
    ) -> PlaceOrderResult:
        """Оформить заказ в Saleor."""
        return await cancel_on_disconnect(request, service.place_order(user, body))
