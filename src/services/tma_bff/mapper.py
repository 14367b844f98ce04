# src/services/tma_bff/mapper.py
"""
Перевод узлов каталога Saleor в доменные модели.
"""

from __future__ import annotations

import json
from decimal import Decimal

from src.services.tma_bff.gateway import (
    CategoryNode,
    ProductNode,
    RestaurantNode,
    SaleorImage,
    SaleorMeta,
    VariantNode,
)
from src.shared.models.catalog import Category, Dish, Money, Restaurant


def image_url(*images: SaleorImage | None) -> str | None:
    """Первый непустой URL картинки или None."""
    for image in images:
        if image is not None and image.url:
            return image.url
    return None


def parse_tags(metadata: list[SaleorMeta], key: str = "tma_tags") -> list[str]:
    """
    Теги ресторана из метаданных.

    Значение — JSON-массив строк или строка через запятую. JSON пробуем
    только если значение начинается с "[". Пустые теги и дубли отбрасываются.
    Нет ключа или пустое значение — пустой список.
    """
    for meta in metadata:
        if meta.key != key:
            continue

        value = meta.value.strip()
        if not value:
            return []

        tags: list[str] | None = None
        if value.startswith("["):
            try:
                parsed = json.loads(value)
            except ValueError:
                parsed = None
            if isinstance(parsed, list) and all(isinstance(t, str) for t in parsed):
                tags = parsed

        if tags is None:
            tags = [part.strip() for part in value.split(",")]

        return list(dict.fromkeys(t for t in tags if t))
    return []


class DomainMapper:
    """Маппинг ресторан → категория → блюдо."""

    def __init__(self, tags_metadata_key: str = "tma_tags") -> None:
        self.tags_metadata_key = tags_metadata_key

    def restaurant(self, node: RestaurantNode) -> Restaurant:
        return Restaurant(
            id=node.id,
            name=node.name,
            description=node.description,
            image_url=image_url(node.background_image),
            tags=parse_tags(node.metadata, self.tags_metadata_key),
        )

    def restaurants(self, nodes: list[RestaurantNode]) -> list[Restaurant]:
        return [self.restaurant(node) for node in nodes]

    def categories(self, restaurant_id: str, nodes: list[CategoryNode]) -> list[Category]:
        return [
            Category(
                id=node.id,
                restaurant_id=restaurant_id,
                name=node.name,
                description=node.description,
                image_url=image_url(node.background_image),
            )
            for node in nodes
        ]

    def dish(self, restaurant_id: str, category_id: str, product: ProductNode) -> Dish | None:
        """
        Блюдо из товара. Берётся только первый вариант; товар без
        вариантов заказать нельзя, для него возвращается None.
        """
        if not product.variants:
            return None
        variant = product.variants[0]

        return Dish(
            id=variant.id,
            product_id=product.id,
            restaurant_id=restaurant_id,
            category_id=category_id,
            name=product.name,
            description=product.description,
            image_url=image_url(product.thumbnail),
            price=self.price(variant),
        )

    def dishes(
        self,
        restaurant_id: str,
        category_id: str,
        products: list[ProductNode],
    ) -> list[Dish]:
        result = []
        for product in products:
            dish = self.dish(restaurant_id, category_id, product)
            if dish is not None:
                result.append(dish)
        return result

    @staticmethod
    def price(variant: VariantNode) -> Money:
        """Цена варианта; без данных о цене — 0 и пустая валюта."""
        if variant.pricing is None or variant.pricing.price is None:
            return Money()
        gross = variant.pricing.price.gross
        return Money(
            amount=gross.amount if gross.amount is not None else Decimal("0"),
            currency=gross.currency or "",
        )
