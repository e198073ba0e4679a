"""Pricing cascade for stays: seasonal rate, guest discounts, supplements, taxes and fees.

The calculation is deterministic and side-effect free. Every monetary
component is rounded to cents once, and the grand total is the sum of the
rounded components, so the breakdown always adds up to the total that is
handed to invoicing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping, Optional

from frontdesk.domain.catalog import PRICING_TIERS, PricingTier
from frontdesk.domain.constraints import PricingConfig, validate_pricing_config
from frontdesk.domain.models import GuestComposition, PricingBreakdown, Room
from frontdesk.domain.seasons import get_seasonal_period, tourism_tax_band
from frontdesk.utils.config import Settings, get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
SECONDS_PER_DAY = 24 * 60 * 60


class PricingError(Exception):
    """Base exception for pricing failures."""


class PricingValidationError(PricingError):
    """Raised when a pricing request cannot be priced."""


class UnknownRoomError(PricingError):
    """Raised when a room id is not part of the inventory."""


@dataclass(frozen=True)
class PricingRequest:
    room: Room
    check_in: datetime
    check_out: datetime
    guests: GuestComposition
    has_pets: bool = False
    needs_parking: bool = False
    additional_charges: Decimal = ZERO
    pricing_tier_id: Optional[str] = None
    vip_discount_percentage: float = 0.0


def to_money(value: Decimal | float | int) -> Decimal:
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_nights(check_in: datetime, check_out: datetime) -> int:
    return math.ceil((check_out - check_in).total_seconds() / SECONDS_PER_DAY)


def child_accommodation_multiplier(age: int) -> Decimal:
    if age < 3:
        return Decimal("0.0")
    if age < 7:
        return Decimal("0.5")
    if age < 14:
        return Decimal("0.8")
    return Decimal("1.0")


def tourism_tax_multiplier(age: int) -> Decimal:
    if age < 12:
        return Decimal("0.0")
    if age < 18:
        return Decimal("0.5")
    return Decimal("1.0")


class PricingService:
    """Computes the authoritative price breakdown for a stay."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        pricing_tiers: Optional[Mapping[str, PricingTier]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._config = PricingConfig.from_settings(self._settings)
        validate_pricing_config(self._config)
        self._pricing_tiers = dict(pricing_tiers or PRICING_TIERS)

    @property
    def pricing_tiers(self) -> list[PricingTier]:
        return [self._pricing_tiers[tier_id] for tier_id in sorted(self._pricing_tiers)]

    def _resolve_tier(self, tier_id: Optional[str]) -> PricingTier:
        resolved_id = tier_id or self._settings.default_pricing_tier_id
        tier = self._pricing_tiers.get(resolved_id)
        if tier is None:
            raise PricingValidationError(f"Unknown pricing tier '{resolved_id}'")
        return tier

    def _validate_request(self, request: PricingRequest) -> int:
        nights = calculate_nights(request.check_in, request.check_out)
        if nights < 1:
            raise PricingValidationError("Check-out must be at least one night after check-in")
        if request.guests.adults < 0:
            raise PricingValidationError("adults must not be negative")
        for child in request.guests.children:
            if child.age < 0:
                raise PricingValidationError("child age must not be negative")
        if request.additional_charges < 0:
            raise PricingValidationError("additional_charges must not be negative")
        if not 0.0 <= request.vip_discount_percentage <= 100.0:
            raise PricingValidationError("vip_discount_percentage must be between 0 and 100")
        return nights

    def _base_rate(self, room: Room, period: str, tier: PricingTier) -> Decimal:
        seasonal_rate = room.seasonal_rates.get(period)
        if seasonal_rate is None:
            raise PricingValidationError(
                f"Room {room.room_id} has no rate for seasonal period {period}"
            )
        return to_money(
            Decimal(str(seasonal_rate)) * Decimal(str(tier.multiplier_for(period)))
        )

    def _tourism_tax(self, guests: GuestComposition, nights: int, period: str) -> Decimal:
        rate = Decimal(
            str(
                self._config.tourism_tax_high_rate
                if tourism_tax_band(period) == "high"
                else self._config.tourism_tax_low_rate
            )
        )
        guest_weight = Decimal(guests.adults) + sum(
            (tourism_tax_multiplier(child.age) for child in guests.children),
            Decimal("0"),
        )
        return to_money(rate * guest_weight * nights)

    def _service_fee(self, net_amount: Decimal) -> tuple[Decimal, Decimal]:
        net = to_money(net_amount)
        vat = to_money(net * Decimal(str(self._config.services_vat_rate)))
        return net + vat, vat

    def calculate(self, request: PricingRequest) -> PricingBreakdown:
        nights = self._validate_request(request)
        room = request.room
        period = get_seasonal_period(request.check_in)
        tier = self._resolve_tier(request.pricing_tier_id)
        base_rate = self._base_rate(room, period, tier)
        stay_rate = base_rate * nights

        bands = {"0_3": ZERO, "3_7": ZERO, "7_14": ZERO}
        if room.rules.fixed_pricing:
            subtotal = to_money(stay_rate)
        else:
            subtotal = to_money(stay_rate * request.guests.total_guests)
            for child in request.guests.children:
                discount = stay_rate * (Decimal("1") - child_accommodation_multiplier(child.age))
                if child.age < 3:
                    bands["0_3"] += discount
                elif child.age < 7:
                    bands["3_7"] += discount
                elif child.age < 14:
                    bands["7_14"] += discount
            bands = {band: to_money(amount) for band, amount in bands.items()}

        children_discounts = bands["0_3"] + bands["3_7"] + bands["7_14"]
        vip_discount = to_money(
            (subtotal - children_discounts)
            * Decimal(str(request.vip_discount_percentage))
            / Decimal("100")
        )
        total_discounts = children_discounts + vip_discount
        accommodation_after_discounts = subtotal - total_discounts

        short_stay_supplement = ZERO
        if nights < self._config.short_stay_min_nights:
            short_stay_supplement = to_money(
                accommodation_after_discounts
                * Decimal(str(self._config.short_stay_supplement_rate))
            )
        accommodation_total = accommodation_after_discounts + short_stay_supplement

        tourism_tax = self._tourism_tax(request.guests, nights, period)

        vat_rate = Decimal(str(self._config.accommodation_vat_rate))
        accommodation_vat = to_money(
            accommodation_total - accommodation_total / (Decimal("1") + vat_rate)
        )

        pet_fee, pet_vat = self._service_fee(
            Decimal(str(self._config.pet_fee)) if request.has_pets else ZERO
        )
        parking_nights = (
            nights
            if request.needs_parking and room.rules.included_parking_spaces == 0
            else 0
        )
        parking_fee, parking_vat = self._service_fee(
            Decimal(str(self._config.parking_fee_per_night)) * parking_nights
        )
        services_vat = pet_vat + parking_vat
        additional_charges = to_money(request.additional_charges)

        total = accommodation_total + tourism_tax + pet_fee + parking_fee + additional_charges

        logger.debug(
            "Stay priced | room_id=%s | period=%s | tier=%s | nights=%s | total=%s",
            room.room_id,
            period,
            tier.tier_id,
            nights,
            total,
        )
        return PricingBreakdown(
            nights=nights,
            seasonal_period=period,
            pricing_tier_id=tier.tier_id,
            fixed_pricing=room.rules.fixed_pricing,
            base_rate=base_rate,
            subtotal=subtotal,
            children_0_3=bands["0_3"],
            children_3_7=bands["3_7"],
            children_7_14=bands["7_14"],
            vip_discount=vip_discount,
            total_discounts=total_discounts,
            short_stay_supplement=short_stay_supplement,
            accommodation_total=accommodation_total,
            tourism_tax=tourism_tax,
            accommodation_vat=accommodation_vat,
            services_vat=services_vat,
            vat_amount=accommodation_vat + services_vat,
            pet_fee=pet_fee,
            parking_fee=parking_fee,
            additional_charges=additional_charges,
            total=total,
        )
