# src/shared/models/catalog.py
"""
Доменная модель каталога: ресторан → категория → блюдо.

Все объекты собираются заново на каждый запрос и не изменяются.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Money(BaseModel):
    """Цена: сумма и код валюты."""
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Decimal("0")
    currency: str = ""


class Restaurant(BaseModel):
    """Ресторан — категория Saleor верхнего уровня (или потомок корневой)."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None
    image_url: str | None = None
    tags: list[str] = Field(default_factory=list)


class Category(BaseModel):
    """Категория меню внутри ресторана."""
    model_config = ConfigDict(frozen=True)

    id: str
    restaurant_id: str
    name: str
    description: str | None = None
    image_url: str | None = None


class Dish(BaseModel):
    """Блюдо. id — это id варианта товара Saleor, который можно заказать."""
    model_config = ConfigDict(frozen=True)

    id: str
    product_id: str
    restaurant_id: str
    category_id: str
    name: str
    description: str | None = None
    image_url: str | None = None
    price: Money = Field(default_factory=Money)
