from __future__ import annotations

from storefront.core.db import StorefrontRepository
from storefront.domain.clone import CloneContext
from storefront.domain.offer import Offer


def clone_offer_for_tenant(
    offer: Offer,
    tenant: str,
    context: CloneContext | None = None,
) -> Offer:
    """Копия предложения (вместе с кодами) для другого арендатора, без id."""
    context = context or CloneContext(tenant=tenant)
    return offer.create_or_retrieve_copy_instance(context).clone


def copy_offer_to_repository(
    offer: Offer,
    tenant: str,
    target: StorefrontRepository,
) -> Offer:
    clone = clone_offer_for_tenant(offer, tenant)
    return target.offers.save(clone)
