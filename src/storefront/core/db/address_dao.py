from __future__ import annotations

import logging
import sqlite3
from collections.abc import Collection
from dataclasses import asdict

from storefront.domain.address import Address, ISOCountry, Phone

from .base import SqliteDao

logger = logging.getLogger(__name__)

ADDRESS_COLUMNS = [
    "id",
    "address_line1",
    "address_line2",
    "address_line3",
    "city",
    "iso_country_subdivision",
    "state_province_region",
    "postal_code",
    "county",
    "zip_four",
    "iso_country_alpha2",
    "iso_country_name",
    "tokenized_address",
    "standardized",
    "company_name",
    "is_default",
    "first_name",
    "last_name",
    "full_name",
    "phone_primary",
    "phone_secondary",
    "phone_fax",
    "email_address",
    "is_business",
    "is_street",
    "is_mailing",
    "verification_level",
    "is_active",
]


class AddressDao(SqliteDao):
    def create(self) -> Address:
        return Address()

    def _phone_to_json(self, phone: Phone | None) -> str | None:
        return self._to_json(asdict(phone)) if phone is not None else None

    def _phone_from_json(self, raw: str | None) -> Phone | None:
        payload = self._from_json(raw)
        return Phone(**payload) if payload else None

    def _row_to_address(self, row: sqlite3.Row) -> Address:
        country = None
        if row["iso_country_alpha2"]:
            country = ISOCountry(alpha2=row["iso_country_alpha2"], name=row["iso_country_name"])
        return Address(
            id=int(row["id"]),
            address_line1=row["address_line1"],
            address_line2=row["address_line2"],
            address_line3=row["address_line3"],
            city=row["city"],
            iso_country_subdivision=row["iso_country_subdivision"],
            state_province_region=row["state_province_region"],
            postal_code=row["postal_code"],
            county=row["county"],
            zip_four=row["zip_four"],
            iso_country_alpha2=country,
            tokenized_address=row["tokenized_address"],
            standardized=self._from_flag(row["standardized"]),
            company_name=row["company_name"],
            is_default=bool(row["is_default"]),
            first_name=row["first_name"],
            last_name=row["last_name"],
            full_name=row["full_name"],
            phone_primary=self._phone_from_json(row["phone_primary"]),
            phone_secondary=self._phone_from_json(row["phone_secondary"]),
            phone_fax=self._phone_from_json(row["phone_fax"]),
            email_address=row["email_address"],
            is_business=bool(row["is_business"]),
            is_street=bool(row["is_street"]),
            is_mailing=bool(row["is_mailing"]),
            verification_level=row["verification_level"],
            is_active=bool(row["is_active"]),
        )

    def read_address_by_id(self, address_id: int) -> Address | None:
        row = self._fetch_one("SELECT * FROM addresses WHERE id = ?", (address_id,))
        if row is None:
            return None
        return self._row_to_address(row)

    def read_addresses_by_ids(self, address_ids: Collection[int]) -> list[Address]:
        ids = list(dict.fromkeys(address_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = self.connection.execute(
            f"SELECT * FROM addresses WHERE id IN ({placeholders}) ORDER BY id",
            tuple(ids),
        ).fetchall()
        return [self._row_to_address(row) for row in rows]

    def save(self, address: Address) -> Address:
        country = address.iso_country_alpha2
        values = (
            address.id,
            address.address_line1,
            address.address_line2,
            address.address_line3,
            address.city,
            address.iso_country_subdivision,
            address.state_province_region,
            address.postal_code,
            address.county,
            address.zip_four,
            country.alpha2 if country else None,
            country.name if country else None,
            address.tokenized_address,
            self._to_flag(address.standardized),
            address.company_name,
            int(address.is_default),
            address.first_name,
            address.last_name,
            address.full_name,
            self._phone_to_json(address.phone_primary),
            self._phone_to_json(address.phone_secondary),
            self._phone_to_json(address.phone_fax),
            address.email_address,
            int(address.is_business),
            int(address.is_street),
            int(address.is_mailing),
            address.verification_level,
            int(address.is_active),
        )
        updates = ",\n".join(f"{column} = excluded.{column}" for column in ADDRESS_COLUMNS[1:])

        with self.connection:
            cursor = self.connection.execute(
                f"""
                INSERT INTO addresses ({", ".join(ADDRESS_COLUMNS)})
                VALUES ({", ".join("?" for _ in ADDRESS_COLUMNS)})
                ON CONFLICT(id) DO UPDATE SET
                    {updates},
                    updated_at = CURRENT_TIMESTAMP
                """,
                values,
            )
        address_id = self._last_id(cursor, address.id)
        logger.debug("Address saved: id=%s", address_id)

        saved = self.read_address_by_id(address_id)
        if saved is None:
            raise RuntimeError(f"Не найден сохранённый адрес: id={address_id}")
        return saved

    def delete(self, address: Address) -> None:
        if address.id is None:
            return
        with self.connection:
            self.connection.execute("DELETE FROM addresses WHERE id = ?", (address.id,))
        logger.debug("Address deleted: id=%s", address.id)
