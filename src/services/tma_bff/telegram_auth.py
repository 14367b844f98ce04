# src/services/tma_bff/telegram_auth.py
"""
Проверка подписи Telegram Mini App initData.

Ключ MAC = SHA256(bot_token), подпись = HMAC-SHA256 от data-check-string:
все поля кроме hash, отсортированные по ключу, в виде key=value через "\\n".
"""

from __future__ import annotations

import hashlib
import hmac
import json
import re
import time
from datetime import datetime, timezone
from urllib.parse import parse_qsl

from pydantic import BaseModel, ConfigDict, StrictInt, field_validator
from pydantic import ValidationError as PydanticValidationError

from src.common.exceptions import (
    ExpiredError,
    MalformedFieldError,
    SignatureMismatchError,
)

_UNIX_SECONDS = re.compile(r"-?[0-9]+")


class TelegramUser(BaseModel):
    """Данные пользователя из initData."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: StrictInt = 0
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    language_code: str = ""

    @field_validator("first_name", "last_name", "username", "language_code", mode="before")
    @classmethod
    def _null_as_empty(cls, v):
        """Telegram может прислать null вместо строки."""
        return "" if v is None else v


class Identity(BaseModel):
    """Проверенная личность пользователя. Живёт в рамках одного запроса."""
    model_config = ConfigDict(frozen=True)

    user: TelegramUser
    auth_date: datetime

    @property
    def user_id(self) -> int:
        return self.user.id

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.user.first_name, self.user.last_name) if p)

    @property
    def username(self) -> str:
        return self.user.username

    @property
    def locale(self) -> str:
        return self.user.language_code


def parse_fields(init_data: str) -> dict[str, str]:
    """Разобрать query-строку initData. Для повторяющегося ключа берётся первое значение."""
    fields: dict[str, str] = {}
    for key, value in parse_qsl(init_data, keep_blank_values=True):
        fields.setdefault(key, value)
    return fields


def build_data_check_string(fields: dict[str, str]) -> str:
    """Каноническая строка: поля без hash, по возрастанию ключа."""
    return "\n".join(
        f"{key}={fields[key]}" for key in sorted(fields) if key != "hash"
    )


def sign(data_check_string: str, bot_token: str) -> str:
    """HMAC-SHA256 с ключом SHA256(bot_token), hex."""
    secret_key = hashlib.sha256(bot_token.encode()).digest()
    return hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()


def verify_init_data(
    init_data: str,
    bot_token: str,
    max_age_seconds: int = 600,
    now: float | None = None,
) -> Identity:
    """
    Проверить initData и вернуть личность пользователя.

    Args:
        init_data: URL-encoded строка от Telegram WebApp.initData
        bot_token: Токен бота
        max_age_seconds: Максимальный возраст данных; 0 отключает проверку
        now: Текущее время (Unix секунды), по умолчанию time.time()

    Returns:
        Identity с данными пользователя

    Raises:
        MalformedFieldError: нет hash/auth_date/user или они не парсятся
        SignatureMismatchError: подпись не совпала
        ExpiredError: данные старше max_age_seconds
    """
    fields = parse_fields(init_data)

    received_hash = fields.pop("hash", "")
    if not received_hash:
        raise MalformedFieldError("missing hash")

    expected_hash = sign(build_data_check_string(fields), bot_token)
    if not hmac.compare_digest(received_hash.lower().encode(), expected_hash.encode()):
        raise SignatureMismatchError("signature mismatch")

    raw_auth_date = fields.get("auth_date", "")
    if not raw_auth_date:
        raise MalformedFieldError("missing auth_date")
    if not _UNIX_SECONDS.fullmatch(raw_auth_date):
        raise MalformedFieldError("invalid auth_date")
    auth_ts = int(raw_auth_date)
    try:
        auth_date = datetime.fromtimestamp(auth_ts, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise MalformedFieldError("invalid auth_date") from None

    if max_age_seconds > 0:
        current = time.time() if now is None else now
        if current - auth_ts > max_age_seconds:
            raise ExpiredError("auth_date expired")

    raw_user = fields.get("user", "")
    if not raw_user:
        raise MalformedFieldError("missing user")
    try:
        user = TelegramUser.model_validate(json.loads(raw_user))
    except (ValueError, PydanticValidationError):
        raise MalformedFieldError("invalid user json") from None
    if user.id == 0:
        raise MalformedFieldError("missing user.id")

    return Identity(user=user, auth_date=auth_date)
