# src/services/tma_bff/service.py
"""
Бизнес-логика TMA BFF.
Каталог ресторанов и оформление заказа поверх Saleor.
"""

from __future__ import annotations

from src.common.exceptions import NotFoundError
from src.common.logger import log_debug, log_info
from src.services.tma_bff.gateway import CatalogGateway
from src.services.tma_bff.hierarchy import HierarchyValidator
from src.services.tma_bff.mapper import DomainMapper
from src.services.tma_bff.order_saga import OrderPlacementSaga
from src.services.tma_bff.telegram_auth import Identity
from src.shared.models.catalog import Category, Dish, Restaurant
from src.shared.models.order import PlaceOrderInput, PlaceOrderResult


class TmaService:
    """
    Сервис для Telegram Mini App.

    Операции:
    - list_restaurants: рестораны (дочерние категории корня или категории уровня 0)
    - list_categories: разделы меню ресторана
    - list_dishes: блюда раздела, после проверки принадлежности ресторану
    - place_order: оформление заказа
    """

    def __init__(
        self,
        gateway: CatalogGateway,
        channel_id: str,
        channel_slug: str,
        restaurant_root_category_id: str = "",
        tags_metadata_key: str = "tma_tags",
    ) -> None:
        self.gateway = gateway
        self.channel_id = channel_id
        self.channel_slug = channel_slug
        self.restaurant_root_category_id = restaurant_root_category_id
        self.mapper = DomainMapper(tags_metadata_key)
        self.hierarchy = HierarchyValidator(gateway)

    # === КАТАЛОГ ===

    async def list_restaurants(self, search: str | None = None) -> list[Restaurant]:
        """
        Список ресторанов.

        Источник выбирается настройкой, а не запросом: при заданной корневой
        категории это её дети (поиск по имени выполняется здесь же), иначе —
        категории уровня 0 с поиском на стороне Saleor.
        """
        if self.restaurant_root_category_id:
            nodes = await self.gateway.restaurants_from_root(self.restaurant_root_category_id)
            if nodes is None:
                raise NotFoundError("root category not found")
            needle = (search or "").strip().casefold()
            if needle:
                nodes = [n for n in nodes if needle in n.name.casefold()]
        else:
            nodes = await self.gateway.restaurants_top_level(search)

        restaurants = self.mapper.restaurants(nodes)
        await log_debug("Рестораны загружены", extra={"count": len(restaurants)})
        return restaurants

    async def list_categories(self, restaurant_id: str) -> list[Category]:
        """Разделы меню ресторана."""
        nodes = await self.gateway.category_children(restaurant_id)
        if nodes is None:
            raise NotFoundError("restaurant category not found")
        return self.mapper.categories(restaurant_id, nodes)

    async def list_dishes(self, restaurant_id: str, category_id: str) -> list[Dish]:
        """Блюда раздела. Товары без вариантов пропускаются."""
        await self.hierarchy.ensure_category_in_restaurant(restaurant_id, category_id)

        products = await self.gateway.products_in_category(category_id, self.channel_slug)
        dishes = self.mapper.dishes(restaurant_id, category_id, products)
        await log_debug(
            "Блюда загружены",
            extra={"category_id": category_id, "products": len(products), "dishes": len(dishes)},
        )
        return dishes

    # === ЗАКАЗ ===

    async def place_order(self, identity: Identity, order_input: PlaceOrderInput) -> PlaceOrderResult:
        """Оформить заказ от имени проверенного пользователя."""
        await log_info(
            "Оформление заказа",
            extra={
                "user_id": identity.user_id,
                "restaurant_id": order_input.restaurant_id,
                "items": len(order_input.items),
            },
        )
        saga = OrderPlacementSaga(self.gateway, self.channel_id)
        return await saga.run(identity.user_id, order_input)
