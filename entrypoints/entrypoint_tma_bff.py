#!/usr/bin/env python3
"""
Entrypoint для TMA BFF.

Backend for Frontend для Telegram Mini App поверх Saleor.

Запуск:
    python entrypoints/entrypoint_tma_bff.py

Порт по умолчанию: 8080 (переопределяется переменной PORT)
"""

import sys
from pathlib import Path

# Добавляем корневую директорию проекта в путь
project_root = Path(__file__).parent.parent.resolve()
sys.path.insert(0, str(project_root))

import uvicorn

from src.config import get_settings


def main() -> None:
    """Запустить TMA BFF."""
    settings = get_settings()

    uvicorn.run(
        "src.services.tma_bff.app:create_app",
        factory=True,
        host=settings.deployment.TMA_BFF_HOST,
        port=settings.deployment.TMA_BFF_PORT,
        reload=settings.system.DEBUG,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
