from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from storefront.domain import Offer, OfferCode
from storefront.errors import OfferCodeError
from storefront.services import OfferCodeService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def service(repository, test_logger) -> OfferCodeService:  # noqa: ANN001
    return OfferCodeService(repository=repository, logger=test_logger)


def test_lookup_returns_offer_for_active_code(repository, service) -> None:  # noqa: ANN001
    saved = repository.offers.save(Offer(name="Welcome", offer_codes=[OfferCode(code="WELCOME")]))

    offer = service.lookup_offer_by_code("WELCOME", now=NOW)

    assert offer is not None
    assert offer.id == saved.id
    assert service.lookup_offer_by_code("MISSING", now=NOW) is None


def test_lookup_skips_expired_code_and_inactive_offer(repository, service) -> None:  # noqa: ANN001
    repository.offers.save(
        Offer(name="Expired code", offer_codes=[OfferCode(code="OLD", end_date=NOW - timedelta(days=1))])
    )
    repository.offers.save(
        Offer(name="Future offer", start_date=NOW + timedelta(days=1), offer_codes=[OfferCode(code="SOON")])
    )

    assert service.lookup_offer_by_code("OLD", now=NOW) is None
    assert service.lookup_offer_by_code("SOON", now=NOW) is None


def test_lookup_respects_email_restriction(repository, service) -> None:  # noqa: ANN001
    repository.offers.save(
        Offer(name="VIP", offer_codes=[OfferCode(code="VIP", email_address="vip@example.com")])
    )

    assert service.lookup_offer_by_code("VIP", now=NOW) is None
    assert service.lookup_offer_by_code("VIP", customer_email="other@example.com", now=NOW) is None
    assert service.lookup_offer_by_code("VIP", customer_email=" VIP@Example.com ", now=NOW) is not None


def test_redeem_increments_uses_and_records_order(repository, service) -> None:  # noqa: ANN001
    repository.offers.save(Offer(name="Once", offer_codes=[OfferCode(code="ONCE", max_uses=1)]))

    redeemed = service.redeem("ONCE", order_ref="order-1", customer_ref="cust-1", now=NOW)

    assert redeemed.uses == 1
    assert repository.offer_codes.count_redemptions(redeemed) == 1
    assert repository.offer_codes.offer_code_is_used(redeemed) is True

    with pytest.raises(OfferCodeError, match="лимит"):
        service.redeem("ONCE", order_ref="order-2", now=NOW)


def test_redeem_same_order_twice_is_noop(repository, service) -> None:  # noqa: ANN001
    repository.offers.save(Offer(name="Multi", offer_codes=[OfferCode(code="MULTI")]))

    first = service.redeem("MULTI", order_ref="order-1", now=NOW)
    second = service.redeem("MULTI", order_ref="order-1", now=NOW)

    assert first.uses == 1
    assert second.uses == 1
    assert repository.offer_codes.count_redemptions(second) == 1


def test_redeem_unknown_code_raises(service) -> None:  # noqa: ANN001
    with pytest.raises(OfferCodeError) as exc_info:
        service.redeem("NOPE", order_ref="order-1", now=NOW)

    assert exc_info.value.code == "NOPE"


def test_redeem_rejects_code_of_inactive_offer(repository, service) -> None:  # noqa: ANN001
    repository.offers.save(
        Offer(name="Ended", end_date=NOW - timedelta(days=1), offer_codes=[OfferCode(code="ENDED")])
    )
    repository.offers.save(Offer(name="Retired", archived=True, offer_codes=[OfferCode(code="RETIRED")]))

    with pytest.raises(OfferCodeError, match="предложение неактивно"):
        service.redeem("ENDED", order_ref="order-1", now=NOW)
    with pytest.raises(OfferCodeError, match="предложение неактивно"):
        service.redeem("RETIRED", order_ref="order-1", now=NOW)

    assert repository.offer_codes.read_offer_code_by_code("ENDED").uses == 0


def test_limit_holds_after_offer_is_resaved(repository, service) -> None:  # noqa: ANN001
    loaded = repository.offers.save(Offer(name="Single", offer_codes=[OfferCode(code="SINGLE", max_uses=1)]))
    service.redeem("SINGLE", order_ref="order-1", now=NOW)

    loaded.marketing_message = "Last chance"
    repository.offers.save(loaded)

    with pytest.raises(OfferCodeError, match="лимит"):
        service.redeem("SINGLE", order_ref="order-2", now=NOW)
    assert repository.offer_codes.count_redemptions(loaded.offer_codes[0]) == 1
