from __future__ import annotations

from pathlib import Path
from typing import Any

from .address_dao import AddressDao
from .migrations import MIGRATIONS_DIR, apply_migrations, connect_db
from .offer_code_dao import OfferCodeDao
from .offer_dao import OfferDao
from .usage import DEFAULT_USAGE_POLICY, OfferCodeUsagePolicy, resolve_usage_policy


class StorefrontRepository:
    def __init__(self, db_path: Path, usage_policy: str | OfferCodeUsagePolicy = DEFAULT_USAGE_POLICY):
        policy = resolve_usage_policy(usage_policy)
        self.db_path = db_path
        self.connection = connect_db(db_path)
        self.offer_codes = OfferCodeDao(self.connection, usage_policy=policy)
        self.offers = OfferDao(self.connection, offer_code_dao=self.offer_codes)
        self.addresses = AddressDao(self.connection)

    def close(self) -> None:
        self.connection.close()

    def __enter__(self) -> StorefrontRepository:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def migrate(self) -> list[str]:
        return apply_migrations(self.connection, MIGRATIONS_DIR)

    def fetch_export_rows(self) -> dict[str, list[dict[str, Any]]]:
        offers = self.connection.execute(
            """
            SELECT
                o.id AS offer_id,
                o.name,
                o.description,
                o.offer_type,
                o.discount_type,
                o.value,
                o.priority,
                o.start_date,
                o.end_date,
                o.combinable_with_other_offers,
                o.automatically_added,
                o.max_uses_per_customer,
                o.max_uses_per_order,
                o.adjustment_type,
                o.archived,
                (
                    SELECT group_concat(c.code, ' | ')
                    FROM offer_codes c
                    WHERE c.offer_id = o.id
                ) AS codes
            FROM offers o
            ORDER BY o.priority, o.id
            """
        ).fetchall()

        codes = self.connection.execute(
            """
            SELECT
                c.id AS offer_code_id,
                c.code,
                c.offer_id,
                o.name AS offer_name,
                c.start_date,
                c.end_date,
                c.max_uses,
                c.uses,
                c.email_address,
                c.archived,
                (
                    SELECT COUNT(*)
                    FROM offer_code_redemptions r
                    WHERE r.offer_code_id = c.id
                ) AS redemptions
            FROM offer_codes c
            LEFT JOIN offers o ON o.id = c.offer_id
            ORDER BY c.code, c.id
            """
        ).fetchall()

        addresses = self.connection.execute(
            """
            SELECT
                id AS address_id, full_name, first_name, last_name, company_name,
                address_line1, address_line2, address_line3, city, county,
                iso_country_subdivision, state_province_region, postal_code, zip_four,
                iso_country_alpha2, email_address, is_default, is_business,
                is_street, is_mailing, standardized, verification_level, is_active
            FROM addresses
            ORDER BY id
            """
        ).fetchall()

        return {
            "offers": [dict(row) for row in offers],
            "offer_codes": [dict(row) for row in codes],
            "addresses": [dict(row) for row in addresses],
        }

    def duplicate_code_diagnostics(self) -> list[dict[str, Any]]:
        rows = self.connection.execute(
            """
            SELECT code, COUNT(*) AS cnt, group_concat(id, ',') AS ids
            FROM offer_codes
            WHERE archived = 0
            GROUP BY code
            HAVING COUNT(*) > 1
            ORDER BY code
            """
        ).fetchall()
        return [dict(row) for row in rows]

    def fetch_counts(self) -> dict[str, int]:
        tables = [
            "offers",
            "offer_codes",
            "offer_code_redemptions",
            "offer_qualifying_criteria_xref",
            "offer_target_criteria_xref",
            "offer_rule_xref",
            "offer_price_data",
            "addresses",
        ]
        counts: dict[str, int] = {}
        for table in tables:
            row = self.connection.execute(f"SELECT COUNT(*) AS cnt FROM {table}").fetchone()
            counts[table] = int(row["cnt"])
        return counts
