# src/infra/__init__.py
"""
Инфраструктурный слой.
Работа с внешними сервисами: Saleor GraphQL API.
"""

from src.infra.saleor_client import SaleorClient

__all__ = [
    "SaleorClient",
]
