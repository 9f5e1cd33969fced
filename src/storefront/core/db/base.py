from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from storefront.domain.money import Money, to_decimal

E = TypeVar("E", bound=Enum)


class SqliteDao:
    """Общие преобразования строк SQLite <-> поля доменных объектов."""

    def __init__(self, connection: sqlite3.Connection):
        self.connection = connection

    @staticmethod
    def _to_json(payload: dict[str, Any] | list[Any] | None) -> str | None:
        if payload is None:
            return None
        return json.dumps(payload, ensure_ascii=False)

    @staticmethod
    def _from_json(raw: str | None) -> Any:
        if raw is None:
            return None
        return json.loads(raw)

    @staticmethod
    def _to_iso(dt: datetime | None) -> str | None:
        if dt is None:
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.isoformat()

    @staticmethod
    def _from_iso(value: str | None) -> datetime | None:
        if not value:
            return None
        dt = datetime.fromisoformat(value)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt

    @staticmethod
    def _to_decimal_text(value: Decimal | None) -> str | None:
        if value is None:
            return None
        return format(to_decimal(value), "f")

    @staticmethod
    def _to_flag(value: bool | None) -> int | None:
        if value is None:
            return None
        return int(value)

    @staticmethod
    def _from_flag(value: int | None) -> bool | None:
        if value is None:
            return None
        return bool(value)

    @staticmethod
    def _enum_value(value: Enum | None) -> str | None:
        return value.value if value is not None else None

    @staticmethod
    def _to_enum(enum_type: type[E], value: str | None) -> E | None:
        if value is None:
            return None
        return enum_type(value)

    def _money_to_json(self, money: Money | None) -> str | None:
        return self._to_json(money.to_dict()) if money is not None else None

    def _money_from_json(self, raw: str | None) -> Money | None:
        payload = self._from_json(raw)
        return Money.from_dict(payload) if payload else None

    def _fetch_one(self, query: str, params: tuple[Any, ...]) -> sqlite3.Row | None:
        return self.connection.execute(query, params).fetchone()

    def _last_id(self, cursor: sqlite3.Cursor, entity_id: int | None) -> int:
        if entity_id is not None:
            return entity_id
        if cursor.lastrowid is None:
            raise RuntimeError("Не удалось получить идентификатор вставленной строки")
        return int(cursor.lastrowid)
