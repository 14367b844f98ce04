# src/services/tma_bff/dependencies.py
"""
Dependency Injection для TMA BFF.

Объекты создаются один раз в lifespan приложения и хранятся в app.state,
модульных синглтонов нет.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

import httpx
from fastapi import Request

from src.config.loader import Settings
from src.infra.saleor_client import SaleorClient
from src.services.tma_bff.gateway import CatalogGateway
from src.services.tma_bff.service import TmaService

T = TypeVar("T")

# Как часто проверять, не отключился ли клиент
DISCONNECT_POLL_INTERVAL = 0.5


def build_saleor_client(
    settings: Settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SaleorClient:
    """Создать клиент Saleor по настройкам."""
    return SaleorClient(
        api_url=settings.saleor.API_URL,
        token=settings.saleor.TOKEN,
        timeout=settings.saleor.TIMEOUT,
        transport=transport,
    )


def build_tma_service(settings: Settings, client: SaleorClient) -> TmaService:
    """Собрать сервис поверх клиента Saleor."""
    gateway = CatalogGateway(client, page_size=settings.catalog.PAGE_SIZE)
    return TmaService(
        gateway=gateway,
        channel_id=settings.saleor.CHANNEL_ID,
        channel_slug=settings.saleor.CHANNEL_SLUG,
        restaurant_root_category_id=settings.catalog.RESTAURANT_ROOT_CATEGORY_ID,
        tags_metadata_key=settings.catalog.TAGS_METADATA_KEY,
    )


def get_app_settings(request: Request) -> Settings:
    """Получить настройки приложения."""
    return request.app.state.settings


def get_tma_service(request: Request) -> TmaService:
    """Получить сервис TMA."""
    service = getattr(request.app.state, "tma_service", None)
    if service is None:
        raise RuntimeError("TmaService не инициализирован: приложение запущено без lifespan")
    return service


async def cancel_on_disconnect(request: Request, awaitable: Awaitable[T]) -> T:
    """
    Выполнить awaitable, отменив его, если клиент отключился.

    Отмена лишь прерывает ожидание ответа Saleor: то, что Saleor уже
    принял (например, созданный черновик заказа), остаётся.
    """
    task = asyncio.ensure_future(awaitable)

    async def watch() -> None:
        while not task.done():
            if await request.is_disconnected():
                task.cancel()
                return
            await asyncio.sleep(DISCONNECT_POLL_INTERVAL)

    watcher = asyncio.create_task(watch())
    try:
        return await task
    finally:
        watcher.cancel()
