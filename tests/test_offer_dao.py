from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from storefront.domain import (
    CustomerMaxUsesStrategyType,
    Money,
    Offer,
    OfferAdjustmentType,
    OfferCode,
    OfferDiscountType,
    OfferItemRestrictionRuleType,
    OfferOfferRuleXref,
    OfferPriceData,
    OfferQualifyingCriteriaXref,
    OfferRuleType,
    OfferTargetCriteriaXref,
    OfferType,
)


def _full_offer() -> Offer:
    return Offer(
        name="Summer 20",
        description="20% off summer collection",
        marketing_message="Hot deals",
        offer_type=OfferType.ORDER_ITEM,
        discount_type=OfferDiscountType.PERCENT_OFF,
        value=Decimal("20.00"),
        priority=3,
        start_date=datetime(2026, 6, 1, tzinfo=timezone.utc),
        end_date=datetime(2026, 9, 1, tzinfo=timezone.utc),
        target_system="web",
        apply_discount_to_sale_price=True,
        offer_item_qualifier_rule_type=OfferItemRestrictionRuleType.QUALIFIER,
        offer_item_target_rule_type=OfferItemRestrictionRuleType.TARGET,
        apply_to_child_items=True,
        combinable_with_other_offers=False,
        automatically_added=False,
        max_uses_per_customer=2,
        max_uses_strategy_type=CustomerMaxUsesStrategyType.ACCOUNT,
        minimum_days_per_usage=30,
        max_uses_per_order=1,
        qualifying_item_criteria_xref={OfferQualifyingCriteriaXref(11), OfferQualifyingCriteriaXref(12)},
        target_item_criteria_xref={OfferTargetCriteriaXref(21)},
        totalitarian_offer=True,
        offer_match_rules_xref={
            OfferRuleType.ORDER.value: OfferOfferRuleXref(rule_id=501),
            OfferRuleType.CUSTOMER.value: OfferOfferRuleXref(rule_id=502),
        },
        use_list_for_discounts=True,
        offer_price_data=[
            OfferPriceData(amount=Decimal("9.99"), quantity=2, identifier_type="SKU", identifier="TSHIRT-M"),
            OfferPriceData(amount=Decimal("19.99"), identifier_type="PRODUCT", identifier="42"),
        ],
        qualifying_item_sub_total=Money("50.00"),
        order_min_sub_total=Money("100.00", "EUR"),
        target_min_sub_total=Money("25"),
        offer_codes=[OfferCode(code="SUMMER20"), OfferCode(code="SUMMER20-VIP", max_uses=10)],
        requires_related_target_and_qualifiers=True,
        adjustment_type=OfferAdjustmentType.FUTURE_CREDIT,
    )


def test_read_missing_offer_returns_none(repository) -> None:  # noqa: ANN001
    assert repository.offers.read_offer_by_id(1) is None
    assert repository.offers.read_offers_by_ids([]) == []


def test_offer_round_trip_through_storage(repository) -> None:  # noqa: ANN001
    offer = _full_offer()

    saved = repository.offers.save(offer)

    assert saved.id is not None
    for attribute in [
        "name",
        "description",
        "marketing_message",
        "offer_type",
        "discount_type",
        "value",
        "priority",
        "start_date",
        "end_date",
        "target_system",
        "apply_discount_to_sale_price",
        "offer_item_qualifier_rule_type",
        "offer_item_target_rule_type",
        "apply_to_child_items",
        "combinable_with_other_offers",
        "automatically_added",
        "max_uses_per_customer",
        "max_uses_strategy_type",
        "minimum_days_per_usage",
        "max_uses_per_order",
        "qualifying_item_criteria_xref",
        "target_item_criteria_xref",
        "totalitarian_offer",
        "offer_match_rules_xref",
        "use_list_for_discounts",
        "offer_price_data",
        "qualifying_item_sub_total",
        "order_min_sub_total",
        "target_min_sub_total",
        "requires_related_target_and_qualifiers",
        "adjustment_type",
    ]:
        assert getattr(saved, attribute) == getattr(offer, attribute), attribute

    assert saved.is_limited_use_per_customer()
    assert saved.is_limited_use_per_order()
    assert saved.is_future_credit()
    assert [c.code for c in saved.offer_codes] == ["SUMMER20", "SUMMER20-VIP"]
    assert all(c.offer_id == saved.id for c in saved.offer_codes)
    assert all(x.id is not None for x in saved.qualifying_item_criteria_xref)


def test_save_replaces_children_and_removes_dropped_codes(repository) -> None:  # noqa: ANN001
    saved = repository.offers.save(_full_offer())
    dropped = saved.offer_codes[1]

    saved.qualifying_item_criteria_xref = {OfferQualifyingCriteriaXref(99)}
    saved.offer_match_rules_xref = {}
    saved.offer_price_data = saved.offer_price_data[:1]
    saved.offer_codes = saved.offer_codes[:1]
    updated = repository.offers.save(saved)

    assert updated.id == saved.id
    assert updated.qualifying_item_criteria_xref == {OfferQualifyingCriteriaXref(99)}
    assert updated.offer_match_rules_xref == {}
    assert len(updated.offer_price_data) == 1
    assert [c.code for c in updated.offer_codes] == ["SUMMER20"]
    assert repository.offer_codes.read_offer_code_by_id(dropped.id) is None


def test_delete_cascades_to_codes(repository) -> None:  # noqa: ANN001
    saved = repository.offers.save(_full_offer())
    code_ids = [c.id for c in saved.offer_codes]

    repository.offers.delete(saved)
    repository.offers.delete(saved)

    assert repository.offers.read_offer_by_id(saved.id) is None
    assert repository.offer_codes.read_offer_codes_by_ids(code_ids) == []
    counts = repository.fetch_counts()
    assert counts["offer_rule_xref"] == 0
    assert counts["offer_price_data"] == 0


def test_read_all_offers_filters_archived(repository) -> None:  # noqa: ANN001
    repository.offers.save(Offer(name="B", priority=2))
    repository.offers.save(Offer(name="A", priority=1))
    repository.offers.save(Offer(name="Old", archived=True))

    assert [o.name for o in repository.offers.read_all_offers()] == ["A", "B"]
    assert len(repository.offers.read_all_offers(include_archived=True)) == 3


def test_read_offers_by_automatic_delivery(repository) -> None:  # noqa: ANN001
    now = datetime(2026, 5, 1, tzinfo=timezone.utc)
    repository.offers.save(Offer(name="auto", automatically_added=True))
    repository.offers.save(Offer(name="manual"))
    repository.offers.save(Offer(name="expired", automatically_added=True, end_date=now - timedelta(days=1)))

    offers = repository.offers.read_offers_by_automatic_delivery(now)

    assert [o.name for o in offers] == ["auto"]


def test_migrations_are_idempotent(repository) -> None:  # noqa: ANN001
    assert repository.migrate() == []
    applied = repository.connection.execute("SELECT COUNT(*) AS cnt FROM schema_migrations").fetchone()["cnt"]
    assert applied == 2


def test_saving_stale_offer_keeps_redeemed_uses(repository) -> None:  # noqa: ANN001
    loaded = repository.offers.save(Offer(name="Limited", offer_codes=[OfferCode(code="ONE", max_uses=1)]))
    code = loaded.offer_codes[0]
    repository.offer_codes.record_redemption(code, order_ref="order-1")

    loaded.name = "Limited (renamed)"
    resaved = repository.offers.save(loaded)

    assert resaved.name == "Limited (renamed)"
    assert resaved.offer_codes[0].uses == 1
    assert repository.offer_codes.count_redemptions(code) == 1


def test_failed_save_leaves_nothing_behind(repository) -> None:  # noqa: ANN001
    offer = Offer(name="Broken", offer_codes=[OfferCode(code="OK"), OfferCode(code=None)])

    with pytest.raises(ValueError):
        repository.offers.save(offer)

    assert repository.offers.read_all_offers(include_archived=True) == []
    assert repository.offer_codes.read_all_offer_codes_by_code("OK") == []
    assert offer.id is None
    assert offer.offer_codes[0].offer_id is None


def test_failed_update_keeps_previous_codes(repository) -> None:  # noqa: ANN001
    saved = repository.offers.save(Offer(name="Stable", offer_codes=[OfferCode(code="KEEP")]))
    saved.name = "Changed"
    saved.offer_codes = [OfferCode(code="")]

    with pytest.raises(ValueError):
        repository.offers.save(saved)

    stored = repository.offers.read_offer_by_id(saved.id)
    assert stored.name == "Stable"
    assert [c.code for c in stored.offer_codes] == ["KEEP"]
