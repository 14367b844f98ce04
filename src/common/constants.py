# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class SagaState(str, Enum):
    """Шаги оформления заказа в Saleor."""
    VALIDATING = "validating"
    CREATING = "creating"
    FILLING = "filling"
    COMPLETING = "completing"
    DONE = "done"
    FAILED = "failed"


# Заголовок с initData от Telegram WebApp
INIT_DATA_HEADER = "X-Telegram-Init-Data"

# Ключи метаданных заказа в Saleor
META_TELEGRAM_USER_ID = "tma.telegramUserId"
META_RESTAURANT_ID = "tma.restaurantId"
META_DELIVERY_LAT = "tma.delivery.lat"
META_DELIVERY_LNG = "tma.delivery.lng"
META_DELIVERY_MAPS_URL = "tma.delivery.googleMapsUrl"

# Синтетический email покупателя в Saleor
CUSTOMER_EMAIL_TEMPLATE = "tg-{user_id}@tma.local"

LOGGER_NAME = "tma_bff"
