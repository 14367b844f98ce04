# src/common/exceptions.py
"""
Иерархия ошибок BFF.

- AuthError        → 401 (подвид наружу не раскрывается)
- ValidationError  → 400
- NotFoundError    → 404
- ExternalError    → 502
"""

from __future__ import annotations


class TmaError(Exception):
    """Базовая ошибка приложения."""


# === AUTH ===

class AuthError(TmaError):
    """initData не прошли проверку."""


class MalformedFieldError(AuthError):
    """Отсутствует или не парсится обязательное поле initData."""


class SignatureMismatchError(AuthError):
    """Подпись initData не совпала."""


class ExpiredError(AuthError):
    """initData старше допустимого возраста."""


# === DOMAIN ===

class ValidationError(TmaError):
    """Некорректный запрос. Бросается до обращения к Saleor."""


class NotFoundError(TmaError):
    """Запрошенный родитель (ресторан или категория) не найден."""


class HierarchyMismatchError(NotFoundError):
    """Категория не принадлежит ресторану."""

    def __init__(self, restaurant_id: str, category_id: str) -> None:
        self.restaurant_id = restaurant_id
        self.category_id = category_id
        super().__init__("category does not belong to restaurant")


# === EXTERNAL ===

class ExternalError(TmaError):
    """Ошибка Saleor: транспорт или ошибка, которую вернул сам API."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.message = message
        super().__init__(f"saleor {operation}: {message}")
