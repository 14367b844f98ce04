# src/services/__init__.py
"""
Сервисы приложения.

Сервисы:
- tma_bff: BFF для Telegram Mini App поверх Saleor
"""

__all__: list[str] = []
