from __future__ import annotations

from enum import Enum


class OfferType(str, Enum):
    ORDER_ITEM = "ORDER_ITEM"
    ORDER = "ORDER"
    FULFILLMENT_GROUP = "FULFILLMENT_GROUP"


class OfferDiscountType(str, Enum):
    PERCENT_OFF = "PERCENT_OFF"
    AMOUNT_OFF = "AMOUNT_OFF"
    FIX_PRICE = "FIX_PRICE"


class OfferItemRestrictionRuleType(str, Enum):
    NONE = "NONE"
    QUALIFIER = "QUALIFIER"
    TARGET = "TARGET"
    QUALIFIER_TARGET = "QUALIFIER_TARGET"


class CustomerMaxUsesStrategyType(str, Enum):
    CUSTOMER = "CUSTOMER"
    ACCOUNT = "ACCOUNT"


class OfferAdjustmentType(str, Enum):
    """Как скидка доходит до покупателя: сразу в заказе или кредитом на будущее."""

    ORDER_DISCOUNT = "ORDER_DISCOUNT"
    FUTURE_CREDIT = "FUTURE_CREDIT"


class OfferRuleType(str, Enum):
    """Ключи словаря Offer.offer_match_rules_xref."""

    ORDER = "ORDER"
    FULFILLMENT_GROUP = "FULFILLMENT_GROUP"
    CUSTOMER = "CUSTOMER"
    TIME = "TIME"
    REQUEST = "REQUEST"
