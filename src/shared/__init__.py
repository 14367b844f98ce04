# src/shared/__init__.py
"""
Общий код BFF.

Модули:
- models: доменные модели каталога и заказа, модели ответов API
"""

__all__: list[str] = []
