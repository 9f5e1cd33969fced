from __future__ import annotations

import logging
import sqlite3
from collections.abc import Collection
from dataclasses import replace
from datetime import datetime, timezone

from storefront.domain.money import to_decimal
from storefront.domain.offer import (
    Offer,
    OfferOfferRuleXref,
    OfferPriceData,
    OfferQualifyingCriteriaXref,
    OfferTargetCriteriaXref,
)
from storefront.domain.types import (
    CustomerMaxUsesStrategyType,
    OfferAdjustmentType,
    OfferDiscountType,
    OfferItemRestrictionRuleType,
    OfferType,
)

from .base import SqliteDao
from .offer_code_dao import OfferCodeDao

logger = logging.getLogger(__name__)


class OfferDao(SqliteDao):
    def __init__(self, connection: sqlite3.Connection, offer_code_dao: OfferCodeDao):
        super().__init__(connection)
        self.offer_code_dao = offer_code_dao

    def create(self) -> Offer:
        return Offer()

    def _row_to_offer(self, row: sqlite3.Row) -> Offer:
        offer_id = int(row["id"])
        return Offer(
            id=offer_id,
            name=row["name"],
            description=row["description"],
            marketing_message=row["marketing_message"],
            offer_type=self._to_enum(OfferType, row["offer_type"]),
            discount_type=self._to_enum(OfferDiscountType, row["discount_type"]),
            value=to_decimal(row["value"]),
            priority=int(row["priority"]),
            start_date=self._from_iso(row["start_date"]),
            end_date=self._from_iso(row["end_date"]),
            target_system=row["target_system"],
            apply_discount_to_sale_price=bool(row["apply_discount_to_sale_price"]),
            offer_item_qualifier_rule_type=OfferItemRestrictionRuleType(row["qualifier_rule_type"]),
            offer_item_target_rule_type=OfferItemRestrictionRuleType(row["target_rule_type"]),
            apply_to_child_items=bool(row["apply_to_child_items"]),
            combinable_with_other_offers=bool(row["combinable_with_other_offers"]),
            automatically_added=bool(row["automatically_added"]),
            max_uses_per_customer=row["max_uses_per_customer"],
            max_uses_strategy_type=self._to_enum(CustomerMaxUsesStrategyType, row["max_uses_strategy_type"]),
            minimum_days_per_usage=row["minimum_days_per_usage"],
            max_uses_per_order=int(row["max_uses_per_order"]),
            qualifying_item_criteria_xref=self._read_criteria(
                "offer_qualifying_criteria_xref", offer_id, OfferQualifyingCriteriaXref
            ),
            target_item_criteria_xref=self._read_criteria(
                "offer_target_criteria_xref", offer_id, OfferTargetCriteriaXref
            ),
            totalitarian_offer=self._from_flag(row["totalitarian_offer"]),
            offer_match_rules_xref=self._read_rules(offer_id),
            use_list_for_discounts=self._from_flag(row["use_list_for_discounts"]),
            offer_price_data=self._read_price_data(offer_id),
            qualifying_item_sub_total=self._money_from_json(row["qualifying_item_sub_total"]),
            order_min_sub_total=self._money_from_json(row["order_min_sub_total"]),
            target_min_sub_total=self._money_from_json(row["target_min_sub_total"]),
            offer_codes=self.offer_code_dao.read_offer_codes_by_offer_id(offer_id),
            requires_related_target_and_qualifiers=self._from_flag(row["requires_related_target_and_qualifiers"]),
            adjustment_type=OfferAdjustmentType(row["adjustment_type"]),
            archived=bool(row["archived"]),
        )

    def _read_criteria(self, table: str, offer_id: int, xref_type: type) -> set:
        rows = self.connection.execute(
            f"SELECT id, criteria_id FROM {table} WHERE offer_id = ?",
            (offer_id,),
        ).fetchall()
        return {xref_type(criteria_id=int(row["criteria_id"]), id=int(row["id"])) for row in rows}

    def _read_rules(self, offer_id: int) -> dict[str, OfferOfferRuleXref]:
        rows = self.connection.execute(
            "SELECT id, rule_key, rule_id FROM offer_rule_xref WHERE offer_id = ? ORDER BY rule_key",
            (offer_id,),
        ).fetchall()
        return {
            row["rule_key"]: OfferOfferRuleXref(rule_id=int(row["rule_id"]), id=int(row["id"]))
            for row in rows
        }

    def _read_price_data(self, offer_id: int) -> list[OfferPriceData]:
        rows = self.connection.execute(
            "SELECT * FROM offer_price_data WHERE offer_id = ? ORDER BY position",
            (offer_id,),
        ).fetchall()
        return [
            OfferPriceData(
                amount=to_decimal(row["amount"]),
                quantity=int(row["quantity"]),
                identifier_type=row["identifier_type"],
                identifier=row["identifier"],
                discount_type=self._to_enum(OfferDiscountType, row["discount_type"]),
                start_date=self._from_iso(row["start_date"]),
                end_date=self._from_iso(row["end_date"]),
                archived=bool(row["archived"]),
                id=int(row["id"]),
            )
            for row in rows
        ]

    def read_offer_by_id(self, offer_id: int) -> Offer | None:
        row = self._fetch_one("SELECT * FROM offers WHERE id = ?", (offer_id,))
        if row is None:
            return None
        return self._row_to_offer(row)

    def read_offers_by_ids(self, offer_ids: Collection[int]) -> list[Offer]:
        ids = list(dict.fromkeys(offer_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = self.connection.execute(
            f"SELECT * FROM offers WHERE id IN ({placeholders}) ORDER BY id",
            tuple(ids),
        ).fetchall()
        return [self._row_to_offer(row) for row in rows]

    def read_all_offers(self, include_archived: bool = False) -> list[Offer]:
        query = "SELECT * FROM offers"
        if not include_archived:
            query += " WHERE archived = 0"
        rows = self.connection.execute(query + " ORDER BY priority, id").fetchall()
        return [self._row_to_offer(row) for row in rows]

    def read_offers_by_automatic_delivery(self, now: datetime | None = None) -> list[Offer]:
        moment = now or datetime.now(timezone.utc)
        rows = self.connection.execute(
            "SELECT * FROM offers WHERE automatically_added = 1 AND archived = 0 ORDER BY priority, id"
        ).fetchall()
        offers = [self._row_to_offer(row) for row in rows]
        return [offer for offer in offers if offer.is_active(moment)]

    def save(self, offer: Offer) -> Offer:
        for offer_code in offer.offer_codes:
            self.offer_code_dao.validate(offer_code)

        with self.connection:
            cursor = self.connection.execute(
                """
                INSERT INTO offers (
                    id, name, description, marketing_message, offer_type, discount_type,
                    value, priority, start_date, end_date, target_system,
                    apply_discount_to_sale_price, qualifier_rule_type, target_rule_type,
                    apply_to_child_items, combinable_with_other_offers, automatically_added,
                    max_uses_per_customer, max_uses_strategy_type, minimum_days_per_usage,
                    max_uses_per_order, totalitarian_offer, use_list_for_discounts,
                    qualifying_item_sub_total, order_min_sub_total, target_min_sub_total,
                    requires_related_target_and_qualifiers, adjustment_type, archived
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    marketing_message = excluded.marketing_message,
                    offer_type = excluded.offer_type,
                    discount_type = excluded.discount_type,
                    value = excluded.value,
                    priority = excluded.priority,
                    start_date = excluded.start_date,
                    end_date = excluded.end_date,
                    target_system = excluded.target_system,
                    apply_discount_to_sale_price = excluded.apply_discount_to_sale_price,
                    qualifier_rule_type = excluded.qualifier_rule_type,
                    target_rule_type = excluded.target_rule_type,
                    apply_to_child_items = excluded.apply_to_child_items,
                    combinable_with_other_offers = excluded.combinable_with_other_offers,
                    automatically_added = excluded.automatically_added,
                    max_uses_per_customer = excluded.max_uses_per_customer,
                    max_uses_strategy_type = excluded.max_uses_strategy_type,
                    minimum_days_per_usage = excluded.minimum_days_per_usage,
                    max_uses_per_order = excluded.max_uses_per_order,
                    totalitarian_offer = excluded.totalitarian_offer,
                    use_list_for_discounts = excluded.use_list_for_discounts,
                    qualifying_item_sub_total = excluded.qualifying_item_sub_total,
                    order_min_sub_total = excluded.order_min_sub_total,
                    target_min_sub_total = excluded.target_min_sub_total,
                    requires_related_target_and_qualifiers = excluded.requires_related_target_and_qualifiers,
                    adjustment_type = excluded.adjustment_type,
                    archived = excluded.archived,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (
                    offer.id,
                    offer.name,
                    offer.description,
                    offer.marketing_message,
                    self._enum_value(offer.offer_type),
                    self._enum_value(offer.discount_type),
                    self._to_decimal_text(offer.value),
                    offer.priority or 0,
                    self._to_iso(offer.start_date),
                    self._to_iso(offer.end_date),
                    offer.target_system,
                    int(offer.apply_discount_to_sale_price),
                    offer.offer_item_qualifier_rule_type.value,
                    offer.offer_item_target_rule_type.value,
                    int(offer.apply_to_child_items),
                    int(offer.combinable_with_other_offers),
                    int(offer.automatically_added),
                    offer.max_uses_per_customer,
                    self._enum_value(offer.max_uses_strategy_type),
                    offer.minimum_days_per_usage,
                    offer.max_uses_per_order,
                    self._to_flag(offer.totalitarian_offer),
                    self._to_flag(offer.use_list_for_discounts),
                    self._money_to_json(offer.qualifying_item_sub_total),
                    self._money_to_json(offer.order_min_sub_total),
                    self._money_to_json(offer.target_min_sub_total),
                    self._to_flag(offer.requires_related_target_and_qualifiers),
                    offer.adjustment_type.value,
                    int(offer.archived),
                ),
            )
            offer_id = self._last_id(cursor, offer.id)
            self._replace_children(offer_id, offer)
            self._save_offer_codes(offer_id, offer)

        logger.debug("Offer saved: id=%s name=%s", offer_id, offer.name)

        saved = self.read_offer_by_id(offer_id)
        if saved is None:
            raise RuntimeError(f"Не найдено сохранённое предложение: id={offer_id}")
        return saved

    def _replace_children(self, offer_id: int, offer: Offer) -> None:
        for table, xrefs in (
            ("offer_qualifying_criteria_xref", offer.qualifying_item_criteria_xref),
            ("offer_target_criteria_xref", offer.target_item_criteria_xref),
        ):
            self.connection.execute(f"DELETE FROM {table} WHERE offer_id = ?", (offer_id,))
            self.connection.executemany(
                f"INSERT INTO {table} (offer_id, criteria_id) VALUES (?, ?)",
                [(offer_id, xref.criteria_id) for xref in sorted(xrefs, key=lambda x: x.criteria_id)],
            )

        self.connection.execute("DELETE FROM offer_rule_xref WHERE offer_id = ?", (offer_id,))
        self.connection.executemany(
            "INSERT INTO offer_rule_xref (offer_id, rule_key, rule_id) VALUES (?, ?, ?)",
            [(offer_id, str(key), xref.rule_id) for key, xref in offer.offer_match_rules_xref.items()],
        )

        self.connection.execute("DELETE FROM offer_price_data WHERE offer_id = ?", (offer_id,))
        self.connection.executemany(
            """
            INSERT INTO offer_price_data (
                offer_id, position, amount, quantity, identifier_type, identifier,
                discount_type, start_date, end_date, archived
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    offer_id,
                    position,
                    self._to_decimal_text(tier.amount),
                    tier.quantity,
                    tier.identifier_type,
                    tier.identifier,
                    self._enum_value(tier.discount_type),
                    self._to_iso(tier.start_date),
                    self._to_iso(tier.end_date),
                    int(tier.archived),
                )
                for position, tier in enumerate(offer.offer_price_data)
            ],
        )

    def _save_offer_codes(self, offer_id: int, offer: Offer) -> None:
        kept_ids: set[int] = set()
        for offer_code in offer.offer_codes:
            kept_ids.add(
                self.offer_code_dao._upsert(replace(offer_code, offer_id=offer_id), keep_stored_uses=True)
            )

        # коды, убранные из списка предложения, удаляются вместе со своими погашениями
        for existing in self.offer_code_dao.read_offer_codes_by_offer_id(offer_id):
            if existing.id not in kept_ids:
                self.offer_code_dao._delete(existing.id)

    def delete(self, offer: Offer) -> None:
        if offer.id is None:
            return
        with self.connection:
            self.connection.execute("DELETE FROM offers WHERE id = ?", (offer.id,))
        logger.debug("Offer deleted: id=%s", offer.id)
