# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Источник значений по умолчанию — config/config.json (путь можно переопределить
через CONFIG_PATH). Секреты и параметры деплоя переопределяются из окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    override = os.getenv("CONFIG_PATH")
    if override:
        return Path(override)
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "saleor_tma_bff"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Настройки развертывания."""
    TMA_BFF_HOST: str = "0.0.0.0"
    TMA_BFF_PORT: int = 8080
    CORS_ALLOW_ORIGINS: list[str] = Field(default_factory=lambda: ["*"])


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "colored"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5

    @field_validator("LOG_FORMAT")
    @classmethod
    def check_format(cls, v: str) -> str:
        """Допустимы только json и colored."""
        if v not in ("json", "colored"):
            raise ValueError(f"Неизвестный LOG_FORMAT: {v}")
        return v


class TelegramSettings(BaseModel):
    """Настройки Telegram Mini App."""
    BOT_TOKEN: str = ""
    # 0 отключает проверку возраста initData
    INIT_DATA_MAX_AGE: int = Field(default=600, ge=0)

    @field_validator("BOT_TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None) -> str:
        """Получает токен из переменных окружения, если не задан."""
        if not v:
            return os.getenv("TELEGRAM_BOT_TOKEN", "")
        return v


class SaleorSettings(BaseModel):
    """Настройки Saleor GraphQL API."""
    API_URL: str = ""
    TOKEN: str = ""
    CHANNEL_ID: str = ""
    CHANNEL_SLUG: str = ""
    TIMEOUT: float = Field(default=20.0, gt=0)

    @field_validator("TOKEN", mode="before")
    @classmethod
    def get_from_env(cls, v: str | None) -> str:
        """Получает токен из переменных окружения, если не задан."""
        if not v:
            return os.getenv("SALEOR_TOKEN", "")
        return v


class CatalogSettings(BaseModel):
    """Настройки отображения каталога."""
    # Если задан, рестораны это дочерние категории этой категории,
    # иначе все категории верхнего уровня.
    RESTAURANT_ROOT_CATEGORY_ID: str = ""
    TAGS_METADATA_KEY: str = "tma_tags"
    PAGE_SIZE: int = Field(default=100, ge=1, le=100)


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    saleor: SaleorSettings = Field(default_factory=SaleorSettings)
    catalog: CatalogSettings = Field(default_factory=CatalogSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты переопределяются из переменных окружения.
        """
        return cls.from_dict(load_config_json())

    @classmethod
    def from_dict(cls, config_data: dict[str, Any]) -> "Settings":
        """Собирает секции настроек из плоского словаря."""
        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "saleor_tma_bff"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            deployment=DeploymentSettings(
                TMA_BFF_HOST=data.get("TMA_BFF_HOST", "0.0.0.0"),
                TMA_BFF_PORT=int(os.getenv("PORT", data.get("TMA_BFF_PORT", 8080))),
                CORS_ALLOW_ORIGINS=data.get("CORS_ALLOW_ORIGINS", ["*"]),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "INFO")),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=data.get("LOG_BACKUP_COUNT", 5),
            ),
            telegram=TelegramSettings(
                BOT_TOKEN=os.getenv("TELEGRAM_BOT_TOKEN", data.get("BOT_TOKEN", "")),
                INIT_DATA_MAX_AGE=data.get("INIT_DATA_MAX_AGE", 600),
            ),
            saleor=SaleorSettings(
                API_URL=os.getenv("SALEOR_API_URL", data.get("SALEOR_API_URL", "")),
                TOKEN=os.getenv("SALEOR_TOKEN", data.get("SALEOR_TOKEN", "")),
                CHANNEL_ID=os.getenv("SALEOR_CHANNEL_ID", data.get("SALEOR_CHANNEL_ID", "")),
                CHANNEL_SLUG=os.getenv("SALEOR_CHANNEL_SLUG", data.get("SALEOR_CHANNEL_SLUG", "")),
                TIMEOUT=data.get("SALEOR_TIMEOUT", 20.0),
            ),
            catalog=CatalogSettings(
                RESTAURANT_ROOT_CATEGORY_ID=os.getenv(
                    "TMA_RESTAURANT_ROOT_CATEGORY_ID",
                    data.get("RESTAURANT_ROOT_CATEGORY_ID", ""),
                ),
                TAGS_METADATA_KEY=data.get("TAGS_METADATA_KEY", "tma_tags"),
                PAGE_SIZE=data.get("CATALOG_PAGE_SIZE", 100),
            ),
        )

    def missing_required(self) -> list[str]:
        """Возвращает имена обязательных параметров, которые не заданы."""
        required = {
            "SALEOR_API_URL": self.saleor.API_URL,
            "SALEOR_TOKEN": self.saleor.TOKEN,
            "SALEOR_CHANNEL_ID": self.saleor.CHANNEL_ID,
            "SALEOR_CHANNEL_SLUG": self.saleor.CHANNEL_SLUG,
            "TELEGRAM_BOT_TOKEN": self.telegram.BOT_TOKEN,
        }
        return [name for name, value in required.items() if not value]


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает настройки приложения.
    Загружаются один раз при старте процесса и дальше только читаются.
    """
    from dotenv import load_dotenv

    # Загружаем .env файл
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()
