# src/shared/models/order.py
"""
Модели оформления заказа.

PlaceOrderInput — то, что присылает Mini App (два независимых необязательных
поля доставки). PlaceOrderRequest — провалидированный заказ, где точка
доставки представлена ровно одним вариантом DeliveryTarget.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class CartItem(BaseModel):
    """Позиция корзины. quantity проверяется сагой (>= 1)."""
    model_config = ConfigDict(frozen=True)

    dish_id: str
    quantity: int


class Coordinates(BaseModel):
    """Доставка по координатам."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["coordinates"] = "coordinates"
    lat: float = Field(ge=-90, le=90, allow_inf_nan=False)
    lng: float = Field(ge=-180, le=180, allow_inf_nan=False)


class MapsLink(BaseModel):
    """Доставка по ссылке Google Maps."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["maps_link"] = "maps_link"
    url: str


DeliveryTarget = Annotated[Union[Coordinates, MapsLink], Field(discriminator="kind")]


class PlaceOrderRequest(BaseModel):
    """Заказ, прошедший предварительную проверку."""
    model_config = ConfigDict(frozen=True)

    restaurant_id: str
    items: list[CartItem]
    delivery: DeliveryTarget
    comment: str | None = None


class PlaceOrderResult(BaseModel):
    """Результат оформления. status — строка Saleor как есть."""
    model_config = ConfigDict(frozen=True)

    order_id: str
    status: str


# === WIRE ===

class DeliveryLocation(BaseModel):
    """Координаты доставки в запросе от клиента."""
    lat: float
    lng: float


class PlaceOrderInput(BaseModel):
    """Запрос на оформление заказа от Mini App."""
    restaurant_id: str = ""
    items: list[CartItem] = Field(default_factory=list)
    delivery_location: DeliveryLocation | None = None
    google_maps_url: str | None = None
    comment: str | None = None
