# src/services/tma_bff/order_saga.py
"""
Оформление заказа в Saleor в три шага.

VALIDATING → CREATING → FILLING → COMPLETING → DONE, из любого шага — FAILED.

1. draftOrderCreate — черновик заказа с метаданными TMA
2. orderLinesCreate — строки заказа по корзине
3. draftOrderComplete — финализация

Повторов и компенсации нет: если шаг 2 или 3 упал, черновик из шага 1
остаётся в Saleor (в лог пишется его id). Повторный вызов создаёт новый
заказ, ключа идемпотентности нет.
"""

from __future__ import annotations

import asyncio
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from src.common.constants import (
    CUSTOMER_EMAIL_TEMPLATE,
    META_DELIVERY_LAT,
    META_DELIVERY_LNG,
    META_DELIVERY_MAPS_URL,
    META_RESTAURANT_ID,
    META_TELEGRAM_USER_ID,
    SagaState,
)
from src.common.exceptions import ExternalError, TmaError, ValidationError
from src.common.logger import log_debug, log_info, log_warning
from src.services.tma_bff.gateway import CatalogGateway, OrderMutationPayload, OrderRef
from src.shared.models.order import (
    CartItem,
    Coordinates,
    DeliveryTarget,
    MapsLink,
    PlaceOrderInput,
    PlaceOrderRequest,
    PlaceOrderResult,
)


# =============================================================================
# ПРЕДВАРИТЕЛЬНАЯ ПРОВЕРКА
# =============================================================================

def validate_place_order(order_input: PlaceOrderInput) -> PlaceOrderRequest:
    """
    Проверить запрос до любых обращений к Saleor.

    Два необязательных поля доставки из запроса превращаются в один
    вариант DeliveryTarget.

    Raises:
        ValidationError: пустой ресторан или корзина, quantity < 1,
            заданы обе точки доставки или ни одной,
            координаты вне диапазона или NaN
    """
    if not order_input.restaurant_id.strip():
        raise ValidationError("restaurant_id is required")
    if not order_input.items:
        raise ValidationError("items must not be empty")
    for index, item in enumerate(order_input.items):
        if item.quantity < 1:
            raise ValidationError(f"items[{index}].quantity must be >= 1")

    maps_url = (order_input.google_maps_url or "").strip()
    has_coords = order_input.delivery_location is not None
    has_maps_url = bool(maps_url)
    if has_coords == has_maps_url:
        raise ValidationError("provide exactly one of delivery_location or google_maps_url")

    delivery: DeliveryTarget
    if order_input.delivery_location is not None:
        try:
            delivery = Coordinates(
                lat=order_input.delivery_location.lat,
                lng=order_input.delivery_location.lng,
            )
        except PydanticValidationError:
            raise ValidationError("delivery_location is out of range") from None
    else:
        delivery = MapsLink(url=maps_url)

    return PlaceOrderRequest(
        restaurant_id=order_input.restaurant_id,
        items=list(order_input.items),
        delivery=delivery,
        comment=order_input.comment,
    )


def build_order_metadata(user_id: int, request: PlaceOrderRequest) -> list[dict[str, str]]:
    """Метаданные заказа: кто, из какого ресторана и куда везти."""
    meta = [
        {"key": META_TELEGRAM_USER_ID, "value": str(user_id)},
        {"key": META_RESTAURANT_ID, "value": request.restaurant_id},
    ]
    match request.delivery:
        case Coordinates(lat=lat, lng=lng):
            meta.append({"key": META_DELIVERY_LAT, "value": f"{lat:f}"})
            meta.append({"key": META_DELIVERY_LNG, "value": f"{lng:f}"})
        case MapsLink(url=url):
            meta.append({"key": META_DELIVERY_MAPS_URL, "value": url})
    return meta


def customer_email(user_id: int) -> str:
    """Синтетический email покупателя, однозначно выводимый из user_id."""
    return CUSTOMER_EMAIL_TEMPLATE.format(user_id=user_id)


# =============================================================================
# САГА
# =============================================================================

class OrderPlacementSaga:
    """
    Один экземпляр — одна попытка оформления.

    state и draft_order_id отражают, до какого шага дошла попытка.
    """

    def __init__(self, gateway: CatalogGateway, channel_id: str) -> None:
        self.gateway = gateway
        self.channel_id = channel_id
        self.state = SagaState.VALIDATING
        self.draft_order_id: str | None = None

    async def run(self, user_id: int, order_input: PlaceOrderInput) -> PlaceOrderResult:
        """
        Провести заказ через все шаги.

        Raises:
            ValidationError: запрос не прошёл проверку (Saleor не вызывался)
            ExternalError: ошибка Saleor на одном из шагов
        """
        if self.state is not SagaState.VALIDATING:
            raise RuntimeError("OrderPlacementSaga is single-use")

        try:
            request = validate_place_order(order_input)

            await self._enter(SagaState.CREATING)
            order_id = await self._create(user_id, request)
            self.draft_order_id = order_id

            await self._enter(SagaState.FILLING)
            await self._fill(order_id, request.items)

            await self._enter(SagaState.COMPLETING)
            result = await self._complete(order_id)

            await self._enter(SagaState.DONE)
            await log_info(
                "Заказ оформлен",
                extra={"order_id": result.order_id, "status": result.status, "user_id": user_id},
            )
            return result
        except asyncio.CancelledError:
            await self._fail("cancelled")
            raise
        except TmaError as e:
            await self._fail(str(e))
            raise

    # === ШАГИ ===

    async def _create(self, user_id: int, request: PlaceOrderRequest) -> str:
        order_input: dict[str, Any] = {
            "channelId": self.channel_id,
            "userEmail": customer_email(user_id),
            "customerNote": request.comment or "",
            "metadata": build_order_metadata(user_id, request),
        }
        payload = await self.gateway.draft_order_create(order_input)
        order = self._require_order("draftOrderCreate", payload)
        await log_debug("Черновик заказа создан", extra={"order_id": order.id})
        return order.id

    async def _fill(self, order_id: str, items: list[CartItem]) -> None:
        lines = []
        for index, item in enumerate(items):
            # Черновик уже создан; при ошибке он остаётся в Saleor
            if item.quantity <= 0:
                raise ValidationError(f"items[{index}].quantity must be >= 1")
            lines.append({"variantId": item.dish_id, "quantity": item.quantity})

        payload = await self.gateway.order_lines_create(order_id, lines)
        # Ответ без заказа и без ошибок тоже считается сбоем шага
        self._require_order("orderLinesCreate", payload)

    async def _complete(self, order_id: str) -> PlaceOrderResult:
        payload = await self.gateway.draft_order_complete(order_id)
        order = self._require_order("draftOrderComplete", payload)
        return PlaceOrderResult(order_id=order.id, status=order.status)

    # === ВСПОМОГАТЕЛЬНЫЕ ===

    @staticmethod
    def _require_order(operation: str, payload: OrderMutationPayload) -> OrderRef:
        """Заказ из ответа мутации или ExternalError с первой ошибкой Saleor."""
        if payload.order is None:
            raise ExternalError(operation, payload.first_error() or "no order returned")
        return payload.order

    async def _enter(self, state: SagaState) -> None:
        await log_debug(
            f"Заказ: {self.state.value} → {state.value}",
            extra={"draft_order_id": self.draft_order_id},
        )
        self.state = state

    async def _fail(self, reason: str) -> None:
        failed_at = self.state
        self.state = SagaState.FAILED
        if self.draft_order_id is not None:
            # Компенсации нет: черновик остаётся в Saleor
            await log_warning(
                "Оформление прервано после создания черновика",
                extra={
                    "draft_order_id": self.draft_order_id,
                    "failed_at": failed_at.value,
                    "reason": reason,
                },
            )
        else:
            await log_info(
                "Оформление прервано",
                extra={"failed_at": failed_at.value, "reason": reason},
            )
