# src/infra/saleor_client.py
"""
GraphQL клиент Saleor.

Единственная точка, через которую BFF ходит во внешнюю систему:
execute(operation, query, variables) -> словарь "data" или ExternalError.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any

import httpx

from src.common.exceptions import ExternalError
from src.common.logger import log_debug


class SaleorClient:
    """
    Асинхронный клиент Saleor GraphQL API.

    Один httpx.AsyncClient на процесс. Таймаут запроса ограничен
    независимо от дедлайна вызывающего кода. Повторов нет.
    """

    def __init__(
        self,
        api_url: str,
        token: str,
        timeout: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url
        self.http = httpx.AsyncClient(
            timeout=timeout,
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
        )

    async def close(self) -> None:
        """Закрыть HTTP клиент."""
        await self.http.aclose()

    async def execute(
        self,
        operation: str,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Выполнить GraphQL запрос.

        Args:
            operation: Имя операции (для логов и текста ошибок)
            query: Текст GraphQL документа
            variables: Переменные запроса

        Returns:
            Содержимое поля "data". Денежные суммы и прочие дробные
            числа декодируются как Decimal.

        Raises:
            ExternalError: транспортная ошибка, не-2xx ответ, невалидный JSON
                или ошибка GraphQL верхнего уровня (берётся первая)
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        await log_debug(f"Saleor → {operation}", extra={"operation": operation})

        try:
            response = await self.http.post(self.api_url, json=payload)
        except httpx.HTTPError as e:
            raise ExternalError(operation, f"request failed: {e}") from e

        if not response.is_success:
            raise ExternalError(
                operation,
                f"non-2xx ({response.status_code}): {response.text}",
            )

        try:
            envelope = json.loads(response.content, parse_float=Decimal)
        except ValueError as e:
            raise ExternalError(operation, f"decode graphql envelope: {e}") from e

        if not isinstance(envelope, dict):
            raise ExternalError(operation, "decode graphql envelope: not an object")

        errors = envelope.get("errors")
        if errors:
            if not isinstance(errors, list):
                raise ExternalError(operation, "graphql error")
            first = errors[0] if isinstance(errors[0], dict) else {}
            raise ExternalError(operation, str(first.get("message", "graphql error")))

        data = envelope.get("data")
        if not isinstance(data, dict):
            raise ExternalError(operation, "graphql response has no data")
        return data
