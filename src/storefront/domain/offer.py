from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal

from .clone import CloneContext, CloneResult
from .money import Money
from .types import (
    CustomerMaxUsesStrategyType,
    OfferAdjustmentType,
    OfferDiscountType,
    OfferItemRestrictionRuleType,
    OfferType,
)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def within_window(
    start_date: datetime | None,
    end_date: datetime | None,
    now: datetime | None = None,
) -> bool:
    moment = as_utc(now or datetime.now(timezone.utc))
    if start_date is not None and moment < as_utc(start_date):
        return False
    if end_date is not None and moment >= as_utc(end_date):
        return False
    return True


@dataclass(frozen=True, slots=True)
class OfferQualifyingCriteriaXref:
    criteria_id: int
    id: int | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class OfferTargetCriteriaXref:
    criteria_id: int
    id: int | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class OfferOfferRuleXref:
    rule_id: int
    id: int | None = field(default=None, compare=False)


@dataclass(slots=True)
class OfferPriceData:
    """Ценовой уровень предложения (tier) для конкретного идентификатора товара."""

    amount: Decimal
    quantity: int = 1
    identifier_type: str | None = None
    identifier: str | None = None
    discount_type: OfferDiscountType | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    archived: bool = False
    id: int | None = field(default=None, compare=False)

    def is_active(self, now: datetime | None = None) -> bool:
        return not self.archived and within_window(self.start_date, self.end_date, now)


@dataclass(slots=True)
class OfferCode:
    """Код, по которому покупатель вручную применяет предложение."""

    id: int | None = None
    offer_id: int | None = None
    code: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    max_uses: int | None = None
    uses: int = 0
    email_address: str | None = None
    archived: bool = False

    def is_unlimited_use(self) -> bool:
        return not self.max_uses

    def is_active(self, now: datetime | None = None) -> bool:
        return not self.archived and within_window(self.start_date, self.end_date, now)

    def create_or_retrieve_copy_instance(self, context: CloneContext) -> CloneResult[OfferCode]:
        existing = context.lookup(self)
        if existing is not None:
            return CloneResult(existing, already_cloned=True)

        copy = replace(self, id=None, uses=0)
        context.remember(self, copy)
        return CloneResult(copy)


@dataclass(slots=True)
class Offer:
    id: int | None = None
    name: str | None = None
    description: str | None = None
    marketing_message: str | None = None
    offer_type: OfferType | None = None
    discount_type: OfferDiscountType | None = None
    value: Decimal | None = None
    priority: int = 0
    start_date: datetime | None = None
    end_date: datetime | None = None
    target_system: str | None = None
    apply_discount_to_sale_price: bool = False
    offer_item_qualifier_rule_type: OfferItemRestrictionRuleType = OfferItemRestrictionRuleType.NONE
    offer_item_target_rule_type: OfferItemRestrictionRuleType = OfferItemRestrictionRuleType.NONE
    apply_to_child_items: bool = False
    combinable_with_other_offers: bool = True
    automatically_added: bool = False
    # 0 или None означает отсутствие лимита
    max_uses_per_customer: int | None = None
    max_uses_strategy_type: CustomerMaxUsesStrategyType | None = None
    minimum_days_per_usage: int | None = None
    max_uses_per_order: int = 0
    qualifying_item_criteria_xref: set[OfferQualifyingCriteriaXref] = field(default_factory=set)
    target_item_criteria_xref: set[OfferTargetCriteriaXref] = field(default_factory=set)
    totalitarian_offer: bool | None = False
    offer_match_rules_xref: dict[str, OfferOfferRuleXref] = field(default_factory=dict)
    use_list_for_discounts: bool | None = False
    offer_price_data: list[OfferPriceData] = field(default_factory=list)
    qualifying_item_sub_total: Money | None = None
    order_min_sub_total: Money | None = None
    target_min_sub_total: Money | None = None
    offer_codes: list[OfferCode] = field(default_factory=list)
    requires_related_target_and_qualifiers: bool | None = False
    adjustment_type: OfferAdjustmentType = OfferAdjustmentType.ORDER_DISCOUNT
    archived: bool = False

    def is_unlimited_use_per_customer(self) -> bool:
        return not self.max_uses_per_customer

    def is_limited_use_per_customer(self) -> bool:
        return not self.is_unlimited_use_per_customer()

    def is_unlimited_use_per_order(self) -> bool:
        return self.max_uses_per_order == 0

    def is_limited_use_per_order(self) -> bool:
        return not self.is_unlimited_use_per_order()

    def is_future_credit(self) -> bool:
        return self.adjustment_type == OfferAdjustmentType.FUTURE_CREDIT

    def is_active(self, now: datetime | None = None) -> bool:
        return not self.archived and within_window(self.start_date, self.end_date, now)

    def create_or_retrieve_copy_instance(self, context: CloneContext) -> CloneResult[Offer]:
        existing = context.lookup(self)
        if existing is not None:
            return CloneResult(existing, already_cloned=True)

        copy = replace(
            self,
            id=None,
            qualifying_item_criteria_xref={replace(x, id=None) for x in self.qualifying_item_criteria_xref},
            target_item_criteria_xref={replace(x, id=None) for x in self.target_item_criteria_xref},
            offer_match_rules_xref={
                key: replace(xref, id=None) for key, xref in self.offer_match_rules_xref.items()
            },
            offer_price_data=[replace(tier, id=None) for tier in self.offer_price_data],
            offer_codes=[],
        )
        # запоминаем до обхода кодов, чтобы циклические ссылки не копировались повторно
        context.remember(self, copy)
        for offer_code in self.offer_codes:
            code_copy = offer_code.create_or_retrieve_copy_instance(context).clone
            code_copy.offer_id = None
            copy.offer_codes.append(code_copy)
        return CloneResult(copy)
