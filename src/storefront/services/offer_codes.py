from __future__ import annotations

import logging
from datetime import datetime

from storefront.core.db import StorefrontRepository
from storefront.domain.offer import Offer, OfferCode
from storefront.errors import OfferCodeError


class OfferCodeService:
    def __init__(
        self,
        repository: StorefrontRepository,
        logger: logging.Logger | logging.LoggerAdapter,
    ):
        self.repository = repository
        self.logger = logger

    @staticmethod
    def _email_matches(offer_code: OfferCode, customer_email: str | None) -> bool:
        if not offer_code.email_address:
            return True
        if not customer_email:
            return False
        return offer_code.email_address.strip().lower() == customer_email.strip().lower()

    def find_active_code(
        self,
        code: str,
        customer_email: str | None = None,
        now: datetime | None = None,
    ) -> OfferCode | None:
        for offer_code in self.repository.offer_codes.read_all_offer_codes_by_code(code):
            if not offer_code.is_active(now):
                continue
            if not self._email_matches(offer_code, customer_email):
                continue
            return offer_code
        return None

    def lookup_offer_by_code(
        self,
        code: str,
        customer_email: str | None = None,
        now: datetime | None = None,
    ) -> Offer | None:
        offer_code = self.find_active_code(code, customer_email=customer_email, now=now)
        if offer_code is None or offer_code.offer_id is None:
            self.logger.info("Offer code not found or inactive: %s", code)
            return None

        offer = self.repository.offers.read_offer_by_id(offer_code.offer_id)
        if offer is None or not offer.is_active(now):
            self.logger.info("Offer for code %s is missing or inactive", code)
            return None
        return offer

    def redeem(
        self,
        code: str,
        order_ref: str,
        customer_ref: str | None = None,
        customer_email: str | None = None,
        now: datetime | None = None,
    ) -> OfferCode:
        offer_code = self.find_active_code(code, customer_email=customer_email, now=now)
        if offer_code is None:
            raise OfferCodeError(code, "код не найден или неактивен")

        offer = self.repository.offers.read_offer_by_id(offer_code.offer_id) if offer_code.offer_id else None
        if offer is None or not offer.is_active(now):
            raise OfferCodeError(code, "предложение неактивно")
        if not offer_code.is_unlimited_use() and offer_code.uses >= (offer_code.max_uses or 0):
            raise OfferCodeError(code, "лимит использований исчерпан")

        inserted = self.repository.offer_codes.record_redemption(
            offer_code,
            order_ref=order_ref,
            customer_ref=customer_ref,
        )
        if not inserted:
            self.logger.warning("Offer code %s already redeemed for order %s", code, order_ref)
            return offer_code

        redeemed = self.repository.offer_codes.read_offer_code_by_id(offer_code.id)
        if redeemed is None:
            raise RuntimeError(f"Код предложения удалён во время погашения: id={offer_code.id}")
        self.logger.info("Offer code redeemed: %s order=%s uses=%s", code, order_ref, redeemed.uses)
        return redeemed
