from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from frontdesk.domain.catalog import build_hotel_rooms
from frontdesk.domain.models import GuestChild, GuestComposition
from frontdesk.services.availability_service import stay_instants
from frontdesk.services.pricing_service import (
    PricingRequest,
    PricingService,
    PricingValidationError,
    calculate_nights,
    child_accommodation_multiplier,
    tourism_tax_multiplier,
)
from frontdesk.utils.config import get_settings


ROOMS = {room.room_id: room for room in build_hotel_rooms()}
DOUBLE = ROOMS["room-102"]
FAMILY = ROOMS["room-101"]
ROOFTOP = ROOMS["room-401"]


def _request(room, start: date, end: date, adults: int = 2, children=(), **kwargs) -> PricingRequest:
    check_in, check_out = stay_instants(start, end)
    return PricingRequest(
        room=room,
        check_in=check_in,
        check_out=check_out,
        guests=GuestComposition(
            adults=adults,
            children=tuple(GuestChild(age=age) for age in children),
        ),
        **kwargs,
    )


@pytest.fixture()
def service() -> PricingService:
    get_settings.cache_clear()
    return PricingService(settings=get_settings())


def _assert_sums(breakdown) -> None:
    assert breakdown.accommodation_total == (
        breakdown.subtotal - breakdown.total_discounts + breakdown.short_stay_supplement
    )
    assert breakdown.total == (
        breakdown.accommodation_total
        + breakdown.tourism_tax
        + breakdown.pet_fee
        + breakdown.parking_fee
        + breakdown.additional_charges
    )
    assert breakdown.vat_amount == breakdown.accommodation_vat + breakdown.services_vat


def test_double_room_summer_reference_stay(service: PricingService) -> None:
    breakdown = service.calculate(_request(DOUBLE, date(2026, 7, 20), date(2026, 7, 23)))

    assert DOUBLE.room_type == "double"
    assert breakdown.nights == 3
    assert breakdown.seasonal_period == "D"
    assert breakdown.base_rate == Decimal("90.00")
    assert breakdown.subtotal == Decimal("540.00")
    assert breakdown.short_stay_supplement == Decimal("0.00")
    assert breakdown.tourism_tax == Decimal("9.60")
    assert breakdown.total == Decimal("549.60")
    assert breakdown.accommodation_vat == Decimal("62.12")
    assert breakdown.to_invoice_fields() == {
        "total_amount": Decimal("549.60"),
        "vat_amount": Decimal("62.12"),
    }
    _assert_sums(breakdown)


def test_child_discount_bands(service: PricingService) -> None:
    breakdown = service.calculate(
        _request(FAMILY, date(2026, 7, 20), date(2026, 7, 23), children=(2, 5, 10, 16))
    )

    assert breakdown.subtotal == Decimal("1620.00")
    assert breakdown.children_0_3 == Decimal("270.00")
    assert breakdown.children_3_7 == Decimal("135.00")
    assert breakdown.children_7_14 == Decimal("54.00")
    assert breakdown.total_discounts == Decimal("459.00")
    # Adults pay full tax, the 16 year old half, younger children nothing.
    assert breakdown.tourism_tax == Decimal("12.00")
    assert breakdown.total == Decimal("1173.00")
    _assert_sums(breakdown)


@pytest.mark.parametrize(
    ("age", "accommodation", "tax"),
    [
        (0, "0.0", "0.0"),
        (2, "0.0", "0.0"),
        (3, "0.5", "0.0"),
        (6, "0.5", "0.0"),
        (7, "0.8", "0.0"),
        (11, "0.8", "0.0"),
        (12, "0.8", "0.5"),
        (13, "0.8", "0.5"),
        (14, "1.0", "0.5"),
        (17, "1.0", "0.5"),
        (18, "1.0", "1.0"),
    ],
)
def test_age_multipliers(age: int, accommodation: str, tax: str) -> None:
    assert child_accommodation_multiplier(age) == Decimal(accommodation)
    assert tourism_tax_multiplier(age) == Decimal(tax)


def test_short_stay_supplement_applies_below_three_nights(service: PricingService) -> None:
    two_nights = service.calculate(_request(DOUBLE, date(2026, 7, 20), date(2026, 7, 22)))
    three_nights = service.calculate(_request(DOUBLE, date(2026, 7, 20), date(2026, 7, 23)))

    assert two_nights.short_stay_supplement == Decimal("72.00")
    assert two_nights.accommodation_total == Decimal("432.00")
    assert two_nights.total == Decimal("438.40")
    assert three_nights.short_stay_supplement == Decimal("0.00")
    _assert_sums(two_nights)


def test_low_season_single_night(service: PricingService) -> None:
    breakdown = service.calculate(_request(DOUBLE, date(2026, 1, 10), date(2026, 1, 11), adults=1))

    assert breakdown.seasonal_period == "A"
    assert breakdown.subtotal == Decimal("47.00")
    assert breakdown.short_stay_supplement == Decimal("9.40")
    assert breakdown.tourism_tax == Decimal("1.10")
    assert breakdown.total == Decimal("57.50")


def test_check_in_period_prices_the_whole_stay(service: PricingService) -> None:
    # Arrives on the last C day; every night is priced at the C rate.
    breakdown = service.calculate(_request(DOUBLE, date(2026, 7, 8), date(2026, 7, 12)))
    assert breakdown.seasonal_period == "C"
    assert breakdown.subtotal == Decimal("69.00") * 4 * 2


def test_fixed_price_rooftop_ignores_guest_count_and_parking(service: PricingService) -> None:
    breakdown = service.calculate(
        _request(ROOFTOP, date(2026, 7, 20), date(2026, 7, 24), needs_parking=True)
    )

    assert breakdown.fixed_pricing is True
    assert breakdown.subtotal == Decimal("1800.00")
    assert breakdown.parking_fee == Decimal("0.00")
    assert breakdown.tourism_tax == Decimal("12.80")
    assert breakdown.total == Decimal("1812.80")
    _assert_sums(breakdown)


def test_pets_and_parking_carry_services_vat(service: PricingService) -> None:
    breakdown = service.calculate(
        _request(
            DOUBLE,
            date(2026, 7, 20),
            date(2026, 7, 23),
            has_pets=True,
            needs_parking=True,
        )
    )

    assert breakdown.pet_fee == Decimal("25.00")
    assert breakdown.parking_fee == Decimal("26.25")
    assert breakdown.services_vat == Decimal("10.25")
    assert breakdown.total == Decimal("600.85")
    _assert_sums(breakdown)


def test_vip_discount_and_additional_charges(service: PricingService) -> None:
    breakdown = service.calculate(
        _request(
            DOUBLE,
            date(2026, 7, 20),
            date(2026, 7, 23),
            vip_discount_percentage=10.0,
            additional_charges=Decimal("12.345"),
        )
    )

    assert breakdown.vip_discount == Decimal("54.00")
    assert breakdown.total_discounts == Decimal("54.00")
    assert breakdown.additional_charges == Decimal("12.35")
    assert breakdown.total == Decimal("507.95")
    _assert_sums(breakdown)


def test_agency_tier_scales_base_rate(service: PricingService) -> None:
    breakdown = service.calculate(
        _request(DOUBLE, date(2026, 7, 20), date(2026, 7, 23), pricing_tier_id="agency-tui")
    )
    assert breakdown.pricing_tier_id == "agency-tui"
    assert breakdown.base_rate == Decimal("81.00")
    assert breakdown.subtotal == Decimal("486.00")


def test_default_tier_is_listed(service: PricingService) -> None:
    tier_ids = [tier.tier_id for tier in service.pricing_tiers]
    assert "2026-standard" in tier_ids
    assert any(tier.is_default for tier in service.pricing_tiers)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"pricing_tier_id": "no-such-tier"},
        {"vip_discount_percentage": 120.0},
        {"additional_charges": Decimal("-1")},
    ],
)
def test_invalid_requests_raise(service: PricingService, kwargs) -> None:
    with pytest.raises(PricingValidationError):
        service.calculate(_request(DOUBLE, date(2026, 7, 20), date(2026, 7, 23), **kwargs))


def test_same_day_range_is_rejected(service: PricingService) -> None:
    with pytest.raises(PricingValidationError):
        service.calculate(_request(DOUBLE, date(2026, 7, 20), date(2026, 7, 20)))


def test_nights_round_up_partial_days() -> None:
    check_in, check_out = stay_instants(date(2026, 7, 20), date(2026, 7, 23))
    assert calculate_nights(check_in, check_out) == 3
