# tests/infra/test_saleor_client.py
"""
Тесты GraphQL клиента Saleor (src/infra/saleor_client.py).
"""

from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from src.common.exceptions import ExternalError
from src.infra.saleor_client import SaleorClient

API_URL = "https://saleor.test/graphql/"


def _client(handler) -> SaleorClient:
    return SaleorClient(API_URL, "app-token", timeout=5.0, transport=httpx.MockTransport(handler))


class TestSaleorClientRequest:
    """Тесты формирования запроса."""

    @pytest.mark.asyncio
    async def test_sends_bearer_token_and_body(self) -> None:
        """POST на API_URL с Bearer токеном, query и variables."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"ok": True}})

        client = _client(handler)
        data = await client.execute("probe", "query Probe { ok }", {"id": "x"})
        await client.close()

        assert data == {"ok": True}
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == API_URL
        assert request.headers["Authorization"] == "Bearer app-token"
        assert json.loads(request.content) == {"query": "query Probe { ok }", "variables": {"id": "x"}}

    @pytest.mark.asyncio
    async def test_no_variables_key_when_empty(self) -> None:
        """Пустые переменные не отправляются."""
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"data": {}})

        await _client(handler).execute("probe", "query Probe { ok }")

        assert "variables" not in bodies[0]


class TestSaleorClientResponse:
    """Тесты разбора ответа."""

    @pytest.mark.asyncio
    async def test_amounts_decoded_as_decimal(self) -> None:
        """Дробные числа приходят как Decimal без потери точности."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b'{"data": {"amount": 12.10, "qty": 2}}')

        data = await _client(handler).execute("probe", "query Probe { ok }")

        assert data["amount"] == Decimal("12.10")
        assert isinstance(data["amount"], Decimal)
        assert data["qty"] == 2

    @pytest.mark.asyncio
    async def test_graphql_errors_first_message(self) -> None:
        """Ошибки GraphQL верхнего уровня — первое сообщение."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"data": None, "errors": [{"message": "first"}, {"message": "second"}]},
            )

        with pytest.raises(ExternalError) as exc_info:
            await _client(handler).execute("probe", "query Probe { ok }")

        assert exc_info.value.operation == "probe"
        assert exc_info.value.message == "first"
        assert str(exc_info.value) == "saleor probe: first"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("errors", [{"message": "boom"}, "boom", 1])
    async def test_graphql_errors_not_a_list(self, errors) -> None:
        """errors не список — общий текст ошибки."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": None, "errors": errors})

        with pytest.raises(ExternalError) as exc_info:
            await _client(handler).execute("restaurants", "query Restaurants { ok }")

        assert exc_info.value.message == "graphql error"

    @pytest.mark.asyncio
    async def test_non_2xx(self) -> None:
        """Не-2xx ответ — ExternalError с кодом и телом."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="maintenance")

        with pytest.raises(ExternalError, match=r"non-2xx \(503\): maintenance"):
            await _client(handler).execute("probe", "query Probe { ok }")

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        """Невалидный JSON — ExternalError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>oops</html>")

        with pytest.raises(ExternalError, match="decode graphql envelope"):
            await _client(handler).execute("probe", "query Probe { ok }")

    @pytest.mark.asyncio
    async def test_missing_data(self) -> None:
        """Нет data и нет ошибок — ExternalError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": None})

        with pytest.raises(ExternalError, match="has no data"):
            await _client(handler).execute("probe", "query Probe { ok }")

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        """Транспортная ошибка httpx — ExternalError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalError, match="request failed") as exc_info:
            await _client(handler).execute("probe", "query Probe { ok }")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
