# tests/services/tma_bff/test_gateway.py
"""
Тесты типизированных операций Saleor (src/services/tma_bff/gateway.py).
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.common.exceptions import ExternalError
from src.infra.saleor_client import SaleorClient
from src.services.tma_bff.gateway import CATEGORY_DISHES, CatalogGateway


def _gateway(data: dict) -> tuple[CatalogGateway, AsyncMock]:
    client = AsyncMock(spec=SaleorClient)
    client.execute.return_value = data
    return CatalogGateway(client, page_size=25), client


class TestCatalogGateway:
    """Тесты CatalogGateway."""

    @pytest.mark.asyncio
    async def test_products_decoded(self) -> None:
        """Товары, варианты и цены собираются в модели."""
        gateway, client = _gateway(
            {
                "products": {
                    "edges": [
                        {
                            "node": {
                                "id": "p1",
                                "name": "Soup",
                                "thumbnail": None,
                                "variants": [
                                    {
                                        "id": "v1",
                                        "pricing": {
                                            "price": {"gross": {"amount": Decimal("4.20"), "currency": "EUR"}}
                                        },
                                    }
                                ],
                            }
                        }
                    ]
                }
            }
        )

        products = await gateway.products_in_category("c1", "eu-channel")

        assert products[0].variants[0].pricing.price.gross.amount == Decimal("4.20")
        client.execute.assert_awaited_once_with(
            "categoryDishes",
            CATEGORY_DISHES,
            {"first": 25, "channel": "eu-channel", "categoryId": ["c1"]},
        )

    @pytest.mark.asyncio
    async def test_missing_category_is_none(self) -> None:
        """category: null — родитель не найден."""
        gateway, _ = _gateway({"category": None})

        assert await gateway.category_children("c404") is None
        assert await gateway.category_parent("c404") is None
        assert await gateway.restaurants_from_root("c404") is None

    @pytest.mark.asyncio
    async def test_blank_search_sends_no_filter(self) -> None:
        gateway, client = _gateway({"categories": {"edges": []}})

        await gateway.restaurants_top_level("   ")

        variables = client.execute.await_args.args[2]
        assert variables["filter"] is None
        assert variables["level"] == 0

    @pytest.mark.asyncio
    async def test_undecodable_data(self) -> None:
        """Ответ не той формы — ExternalError с именем операции."""
        gateway, _ = _gateway({"category": {"children": {"edges": [{"node": {"name": "no id"}}]}}})

        with pytest.raises(ExternalError) as exc_info:
            await gateway.category_children("c1")

        assert exc_info.value.operation == "restaurantCategories"
        assert exc_info.value.message.startswith("decode graphql data")

    @pytest.mark.asyncio
    async def test_mutation_payload(self) -> None:
        """Ответ мутации: заказ и ошибки."""
        gateway, client = _gateway(
            {
                "draftOrderComplete": {
                    "order": None,
                    "errors": [{"field": "lines", "message": "Insufficient stock", "code": "INSUFFICIENT_STOCK"}],
                }
            }
        )

        payload = await gateway.draft_order_complete("o1")

        assert payload.order is None
        assert payload.first_error() == "Insufficient stock"
        assert client.execute.await_args.args[2] == {"id": "o1"}
