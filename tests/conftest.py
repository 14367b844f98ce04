# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import re
import time
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock
from urllib.parse import urlencode

import httpx
import pytest

from src.config.loader import (
    CatalogSettings,
    DeploymentSettings,
    LoggingSettings,
    SaleorSettings,
    Settings,
    SystemSettings,
    TelegramSettings,
)
from src.services.tma_bff.gateway import CatalogGateway
from src.services.tma_bff.telegram_auth import build_data_check_string, sign

TEST_BOT_TOKEN = "123456:TEST-bot-token"
TEST_USER_ID = 424242

# auth_date по умолчанию: текущее время
NOW = object()


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации (плоский config.json)."""
    return {
        "_comment_system": "Системные настройки",
        "PROJECT_NAME": "saleor_tma_bff_test",
        "VERSION": "1.0.0-test",
        "DEBUG": True,
        "ENVIRONMENT": "test",
        "TMA_BFF_HOST": "127.0.0.1",
        "TMA_BFF_PORT": 8099,
        "CORS_ALLOW_ORIGINS": ["https://web.telegram.org"],
        "LOG_LEVEL": "DEBUG",
        "LOG_FORMAT": "json",
        "LOG_TO_FILE": False,
        "LOG_FILE_PATH": "logs/test.log",
        "BOT_TOKEN": TEST_BOT_TOKEN,
        "INIT_DATA_MAX_AGE": 300,
        "SALEOR_API_URL": "https://saleor.test/graphql/",
        "SALEOR_TOKEN": "saleor-app-token",
        "SALEOR_CHANNEL_ID": "Q2hhbm5lbDox",
        "SALEOR_CHANNEL_SLUG": "default-channel",
        "SALEOR_TIMEOUT": 5.0,
        "RESTAURANT_ROOT_CATEGORY_ID": "",
        "TAGS_METADATA_KEY": "tma_tags",
        "CATALOG_PAGE_SIZE": 50,
    }


@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Временный config.json."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config), encoding="utf-8")
    return config_file


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Фабрика настроек без чтения config.json и окружения."""

    def _make(root_category_id: str = "", max_age: int = 600) -> Settings:
        return Settings(
            system=SystemSettings(VERSION="1.0.0-test", ENVIRONMENT="test"),
            deployment=DeploymentSettings(),
            logging=LoggingSettings(LOG_LEVEL="DEBUG"),
            telegram=TelegramSettings(BOT_TOKEN=TEST_BOT_TOKEN, INIT_DATA_MAX_AGE=max_age),
            saleor=SaleorSettings(
                API_URL="https://saleor.test/graphql/",
                TOKEN="saleor-app-token",
                CHANNEL_ID="Q2hhbm5lbDox",
                CHANNEL_SLUG="default-channel",
            ),
            catalog=CatalogSettings(RESTAURANT_ROOT_CATEGORY_ID=root_category_id),
        )

    return _make


# =============================================================================
# TELEGRAM INIT DATA
# =============================================================================

@pytest.fixture
def bot_token() -> str:
    """Токен тестового бота."""
    return TEST_BOT_TOKEN


@pytest.fixture
def sample_telegram_user() -> dict[str, Any]:
    """Пользователь Telegram из initData."""
    return {
        "id": TEST_USER_ID,
        "first_name": "Ivan",
        "last_name": "Petrov",
        "username": "ivan_p",
        "language_code": "ru",
    }


@pytest.fixture
def init_data_factory(sample_telegram_user: dict[str, Any]) -> Callable[..., str]:
    """
    Фабрика подписанных initData.

    Поля user/auth_date можно переопределить или убрать (значение None).
    """

    def _make(
        bot_token: str = TEST_BOT_TOKEN,
        *,
        auth_date: int | str | None | object = NOW,
        user: dict[str, Any] | str | None = sample_telegram_user,
        extra: dict[str, str] | None = None,
    ) -> str:
        fields: dict[str, str] = {"query_id": "AAHdF6IQAAAAAN0XohDhrOrc"}
        if auth_date is not None:
            fields["auth_date"] = str(int(time.time()) if auth_date is NOW else auth_date)
        if user is not None:
            fields["user"] = user if isinstance(user, str) else json.dumps(user, separators=(",", ":"))
        fields.update(extra or {})
        fields["hash"] = sign(build_data_check_string(fields), bot_token)
        return urlencode(fields)

    return _make


# =============================================================================
# УЗЛЫ SALEOR
# =============================================================================

@pytest.fixture
def restaurant_node() -> dict[str, Any]:
    """Категория-ресторан в формате Saleor."""
    return {
        "id": "Q2F0ZWdvcnk6MTA=",
        "name": "Pizza Place",
        "description": "Wood-fired pizza",
        "backgroundImage": {"url": "https://cdn.test/pizza.png"},
        "metadata": [
            {"key": "other", "value": "x"},
            {"key": "tma_tags", "value": "pizza,italian"},
        ],
    }


@pytest.fixture
def category_node() -> dict[str, Any]:
    """Раздел меню в формате Saleor."""
    return {
        "id": "Q2F0ZWdvcnk6MjA=",
        "name": "Pizzas",
        "description": None,
        "backgroundImage": None,
    }


@pytest.fixture
def product_node() -> dict[str, Any]:
    """Товар с одним вариантом по 12.50 USD."""
    return {
        "id": "UHJvZHVjdDox",
        "name": "Margherita",
        "description": "Tomato, mozzarella",
        "thumbnail": {"url": "https://cdn.test/margherita.png"},
        "variants": [
            {
                "id": "UHJvZHVjdFZhcmlhbnQ6MQ==",
                "pricing": {"price": {"gross": {"amount": 12.50, "currency": "USD"}}},
            }
        ],
    }


def edges(*nodes: dict[str, Any]) -> dict[str, Any]:
    """Обернуть узлы в connection Saleor."""
    return {"edges": [{"node": node} for node in nodes]}


@pytest.fixture
def make_edges() -> Callable[..., dict[str, Any]]:
    return edges


# =============================================================================
# МОКИ
# =============================================================================

@pytest.fixture
def mock_gateway() -> AsyncMock:
    """Мок CatalogGateway: все методы — AsyncMock."""
    return AsyncMock(spec=CatalogGateway)


class FakeSaleor:
    """
    Saleor за httpx.MockTransport.

    Ответы регистрируются по имени GraphQL операции из документа
    (RestaurantsFromRoot, CreateDraft, ...). Все запросы сохраняются.
    """

    _OPERATION = re.compile(r"(?:query|mutation)\s+(\w+)")

    def __init__(self) -> None:
        self.responses: dict[str, tuple[int, dict[str, Any]]] = {}
        self.requests: list[dict[str, Any]] = []

    def on(
        self,
        operation: str,
        data: dict[str, Any] | None = None,
        *,
        errors: list[dict[str, Any]] | None = None,
        status_code: int = 200,
    ) -> None:
        body: dict[str, Any] = {"data": data}
        if errors is not None:
            body["errors"] = errors
        self.responses[operation] = (status_code, body)

    def calls(self, operation: str) -> list[dict[str, Any]]:
        """Переменные всех запросов операции."""
        return [
            req.get("variables", {})
            for req in self.requests
            if self._OPERATION.search(req["query"]).group(1) == operation
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        operation = self._OPERATION.search(body["query"]).group(1)
        if operation not in self.responses:
            return httpx.Response(500, text=f"unexpected operation {operation}")
        status_code, payload = self.responses[operation]
        return httpx.Response(status_code, json=payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_saleor() -> FakeSaleor:
    """Фейковый Saleor для клиента и приложения."""
    return FakeSaleor()
