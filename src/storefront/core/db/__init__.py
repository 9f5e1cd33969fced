from .address_dao import AddressDao
from .migrations import apply_migrations, connect_db
from .offer_code_dao import OfferCodeDao
from .offer_dao import OfferDao
from .repository import StorefrontRepository
from .usage import USAGE_POLICIES, OfferCodeUsagePolicy, resolve_usage_policy

__all__ = [
    "connect_db",
    "apply_migrations",
    "AddressDao",
    "OfferCodeDao",
    "OfferDao",
    "StorefrontRepository",
    "OfferCodeUsagePolicy",
    "USAGE_POLICIES",
    "resolve_usage_policy",
]
