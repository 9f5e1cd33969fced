"""
Политики проверки "использован ли код" для OfferCodeDao.offer_code_is_used.

redeemed  - по коду есть хотя бы одно погашение (заказ, в котором код применён);
persisted - код сохранён в базе;
exhausted - у кода ограниченное число использований и лимит исчерпан.
"""

from __future__ import annotations

import sqlite3
from typing import Callable

from storefront.domain.offer import OfferCode
from storefront.errors import UnknownUsagePolicyError

OfferCodeUsagePolicy = Callable[[sqlite3.Connection, OfferCode], bool]

DEFAULT_USAGE_POLICY = "redeemed"


def redeemed_policy(connection: sqlite3.Connection, offer_code: OfferCode) -> bool:
    if offer_code.id is None:
        return False
    row = connection.execute(
        "SELECT COUNT(*) AS cnt FROM offer_code_redemptions WHERE offer_code_id = ?",
        (offer_code.id,),
    ).fetchone()
    return int(row["cnt"]) > 0


def persisted_policy(connection: sqlite3.Connection, offer_code: OfferCode) -> bool:
    if offer_code.id is None:
        return False
    row = connection.execute("SELECT 1 FROM offer_codes WHERE id = ?", (offer_code.id,)).fetchone()
    return row is not None


def exhausted_policy(connection: sqlite3.Connection, offer_code: OfferCode) -> bool:
    if offer_code.id is None:
        return False
    row = connection.execute(
        "SELECT uses, max_uses FROM offer_codes WHERE id = ?",
        (offer_code.id,),
    ).fetchone()
    if row is None or not row["max_uses"]:
        return False
    return int(row["uses"]) >= int(row["max_uses"])


USAGE_POLICIES: dict[str, OfferCodeUsagePolicy] = {
    "redeemed": redeemed_policy,
    "persisted": persisted_policy,
    "exhausted": exhausted_policy,
}


def resolve_usage_policy(policy: str | OfferCodeUsagePolicy) -> OfferCodeUsagePolicy:
    if callable(policy):
        return policy
    try:
        return USAGE_POLICIES[policy.strip().lower()]
    except KeyError:
        raise UnknownUsagePolicyError(
            f"Неизвестная политика использования кода: {policy!r} "
            f"(допустимо: {', '.join(sorted(USAGE_POLICIES))})"
        ) from None
