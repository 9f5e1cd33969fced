from .doctor import run_doctor_checks
from .exporter import export_data
from .offer_codes import OfferCodeService
from .tenancy import clone_offer_for_tenant, copy_offer_to_repository

__all__ = [
    "OfferCodeService",
    "clone_offer_for_tenant",
    "copy_offer_to_repository",
    "export_data",
    "run_doctor_checks",
]
