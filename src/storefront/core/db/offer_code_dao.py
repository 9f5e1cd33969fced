from __future__ import annotations

import logging
import sqlite3
from collections.abc import Collection

from storefront.domain.offer import OfferCode

from .base import SqliteDao
from .usage import DEFAULT_USAGE_POLICY, OfferCodeUsagePolicy, resolve_usage_policy

logger = logging.getLogger(__name__)


class OfferCodeDao(SqliteDao):
    def __init__(
        self,
        connection: sqlite3.Connection,
        usage_policy: str | OfferCodeUsagePolicy = DEFAULT_USAGE_POLICY,
    ):
        super().__init__(connection)
        self.usage_policy = resolve_usage_policy(usage_policy)

    def _row_to_offer_code(self, row: sqlite3.Row) -> OfferCode:
        return OfferCode(
            id=int(row["id"]),
            offer_id=row["offer_id"],
            code=row["code"],
            start_date=self._from_iso(row["start_date"]),
            end_date=self._from_iso(row["end_date"]),
            max_uses=row["max_uses"],
            uses=int(row["uses"]),
            email_address=row["email_address"],
            archived=bool(row["archived"]),
        )

    def create(self) -> OfferCode:
        return OfferCode()

    def read_offer_code_by_id(self, offer_code_id: int) -> OfferCode | None:
        row = self._fetch_one("SELECT * FROM offer_codes WHERE id = ?", (offer_code_id,))
        if row is None:
            return None
        return self._row_to_offer_code(row)

    def read_offer_codes_by_ids(self, offer_code_ids: Collection[int]) -> list[OfferCode]:
        ids = list(dict.fromkeys(offer_code_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = self.connection.execute(
            f"SELECT * FROM offer_codes WHERE id IN ({placeholders}) ORDER BY id",
            tuple(ids),
        ).fetchall()
        return [self._row_to_offer_code(row) for row in rows]

    def read_offer_code_by_code(self, code: str) -> OfferCode | None:
        row = self._fetch_one(
            "SELECT * FROM offer_codes WHERE code = ? AND archived = 0 ORDER BY id LIMIT 1",
            (code,),
        )
        if row is None:
            return None
        return self._row_to_offer_code(row)

    def read_all_offer_codes_by_code(self, code: str) -> list[OfferCode]:
        rows = self.connection.execute(
            "SELECT * FROM offer_codes WHERE code = ? AND archived = 0 ORDER BY id",
            (code,),
        ).fetchall()
        return [self._row_to_offer_code(row) for row in rows]

    def read_offer_codes_by_offer_id(self, offer_id: int) -> list[OfferCode]:
        rows = self.connection.execute(
            "SELECT * FROM offer_codes WHERE offer_id = ? ORDER BY id",
            (offer_id,),
        ).fetchall()
        return [self._row_to_offer_code(row) for row in rows]

    @staticmethod
    def validate(offer_code: OfferCode) -> None:
        if not offer_code.code:
            raise ValueError("OfferCode.code обязателен для сохранения")

    def _upsert(self, offer_code: OfferCode, keep_stored_uses: bool = False) -> int:
        """Пишет строку без commit: вызывается внутри транзакции вызывающего."""
        self.validate(offer_code)
        # счётчик uses меняет только record_redemption; сохранение через предложение его не трогает
        uses_update = "uses = offer_codes.uses" if keep_stored_uses else "uses = excluded.uses"
        cursor = self.connection.execute(
            f"""
            INSERT INTO offer_codes (
                id, offer_id, code, start_date, end_date,
                max_uses, uses, email_address, archived
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                offer_id = excluded.offer_id,
                code = excluded.code,
                start_date = excluded.start_date,
                end_date = excluded.end_date,
                max_uses = excluded.max_uses,
                {uses_update},
                email_address = excluded.email_address,
                archived = excluded.archived,
                updated_at = CURRENT_TIMESTAMP
            """,
            (
                offer_code.id,
                offer_code.offer_id,
                offer_code.code,
                self._to_iso(offer_code.start_date),
                self._to_iso(offer_code.end_date),
                offer_code.max_uses,
                offer_code.uses,
                offer_code.email_address,
                int(offer_code.archived),
            ),
        )
        return self._last_id(cursor, offer_code.id)

    def _delete(self, offer_code_id: int) -> None:
        self.connection.execute("DELETE FROM offer_codes WHERE id = ?", (offer_code_id,))

    def save(self, offer_code: OfferCode) -> OfferCode:
        with self.connection:
            offer_code_id = self._upsert(offer_code)
        logger.debug("Offer code saved: id=%s code=%s", offer_code_id, offer_code.code)

        saved = self.read_offer_code_by_id(offer_code_id)
        if saved is None:
            raise RuntimeError(f"Не найден сохранённый код предложения: id={offer_code_id}")
        return saved

    def delete(self, offer_code: OfferCode) -> None:
        if offer_code.id is None:
            return
        with self.connection:
            self._delete(offer_code.id)
        logger.debug("Offer code deleted: id=%s", offer_code.id)

    def offer_code_is_used(self, offer_code: OfferCode) -> bool:
        return self.usage_policy(self.connection, offer_code)

    def record_redemption(
        self,
        offer_code: OfferCode,
        order_ref: str,
        customer_ref: str | None = None,
    ) -> bool:
        """
        Фиксирует погашение и увеличивает uses в одной транзакции.

        Возвращает False, если этот заказ уже погашал данный код (uses не меняется).
        """
        if offer_code.id is None:
            raise ValueError("Нельзя погасить несохранённый код предложения")

        with self.connection:
            cursor = self.connection.execute(
                """
                INSERT INTO offer_code_redemptions (offer_code_id, order_ref, customer_ref)
                VALUES (?, ?, ?)
                ON CONFLICT(offer_code_id, order_ref) DO NOTHING
                """,
                (offer_code.id, order_ref, customer_ref),
            )
            if cursor.rowcount <= 0:
                return False
            self.connection.execute(
                """
                UPDATE offer_codes
                SET uses = uses + 1, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (offer_code.id,),
            )
        return True

    def count_redemptions(self, offer_code: OfferCode) -> int:
        if offer_code.id is None:
            return 0
        row = self._fetch_one(
            "SELECT COUNT(*) AS cnt FROM offer_code_redemptions WHERE offer_code_id = ?",
            (offer_code.id,),
        )
        return int(row["cnt"])
