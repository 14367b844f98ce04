# src/shared/models/__init__.py
"""
Доменные модели и модели API.
"""

from src.shared.models.catalog import (
    Money,
    Restaurant,
    Category,
    Dish,
)
from src.shared.models.order import (
    CartItem,
    Coordinates,
    MapsLink,
    DeliveryTarget,
    DeliveryLocation,
    PlaceOrderInput,
    PlaceOrderRequest,
    PlaceOrderResult,
)
from src.shared.models.common import (
    ErrorResponse,
    HealthStatus,
)

__all__ = [
    # Catalog
    "Money",
    "Restaurant",
    "Category",
    "Dish",
    # Order
    "CartItem",
    "Coordinates",
    "MapsLink",
    "DeliveryTarget",
    "DeliveryLocation",
    "PlaceOrderInput",
    "PlaceOrderRequest",
    "PlaceOrderResult",
    # Common
    "ErrorResponse",
    "HealthStatus",
]
