# src/services/tma_bff/hierarchy.py
"""
Проверка, что категория принадлежит ресторану.

restaurant_id и category_id приходят от клиента независимо друг от друга,
поэтому перед выдачей блюд родитель категории сверяется с рестораном.
"""

from __future__ import annotations

from src.common.exceptions import HierarchyMismatchError
from src.common.logger import log_debug
from src.services.tma_bff.gateway import CatalogGateway


class HierarchyValidator:
    """Сверка прямого родителя категории с рестораном."""

    def __init__(self, gateway: CatalogGateway) -> None:
        self.gateway = gateway

    async def ensure_category_in_restaurant(self, restaurant_id: str, category_id: str) -> None:
        """
        Raises:
            HierarchyMismatchError: категории нет, у неё нет родителя
                или родитель не совпадает с restaurant_id
            ExternalError: ошибка Saleor
        """
        category = await self.gateway.category_parent(category_id)
        parent_id = category.parent.id if category is not None and category.parent else None

        if parent_id is None or parent_id != restaurant_id:
            await log_debug(
                "Категория не принадлежит ресторану",
                extra={
                    "restaurant_id": restaurant_id,
                    "category_id": category_id,
                    "parent_id": parent_id,
                },
            )
            raise HierarchyMismatchError(restaurant_id, category_id)
