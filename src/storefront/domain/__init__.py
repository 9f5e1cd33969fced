from .address import Address, Country, ISOCountry, Phone, State
from .clone import CloneContext, CloneResult, MultiTenantCloneable
from .money import Money
from .offer import (
    Offer,
    OfferCode,
    OfferOfferRuleXref,
    OfferPriceData,
    OfferQualifyingCriteriaXref,
    OfferTargetCriteriaXref,
)
from .types import (
    CustomerMaxUsesStrategyType,
    OfferAdjustmentType,
    OfferDiscountType,
    OfferItemRestrictionRuleType,
    OfferRuleType,
    OfferType,
)

__all__ = [
    "Address",
    "CloneContext",
    "CloneResult",
    "Country",
    "CustomerMaxUsesStrategyType",
    "ISOCountry",
    "Money",
    "MultiTenantCloneable",
    "Offer",
    "OfferAdjustmentType",
    "OfferCode",
    "OfferDiscountType",
    "OfferItemRestrictionRuleType",
    "OfferOfferRuleXref",
    "OfferPriceData",
    "OfferQualifyingCriteriaXref",
    "OfferRuleType",
    "OfferTargetCriteriaXref",
    "OfferType",
    "Phone",
    "State",
]
