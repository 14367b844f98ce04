# src/services/tma_bff/__init__.py
"""
TMA BFF — Backend for Frontend для Telegram Mini App ресторанного каталога.

- Проверка Telegram initData
- Каталог: рестораны → разделы меню → блюда (категории и товары Saleor)
- Оформление заказа в Saleor: черновик → строки → финализация
"""
