"""Room inventory, seasonal tariffs and pricing tiers for the property."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from frontdesk.domain.models import Room, RoomRules


@dataclass(frozen=True)
class RoomTypeDefinition:
    room_type: str
    name: str
    max_occupancy: int
    seasonal_rates: Mapping[str, float]


@dataclass(frozen=True)
class PricingTier:
    tier_id: str
    name: str
    seasonal_multipliers: Mapping[str, float]
    is_default: bool = False

    def multiplier_for(self, period: str) -> float:
        return float(self.seasonal_multipliers.get(period, 1.0))


# Nightly rates per person (per apartment for fixed-price units), VAT included.
ROOM_TYPES: dict[str, RoomTypeDefinition] = {
    definition.room_type: definition
    for definition in (
        RoomTypeDefinition("big-double", "Big Double Room", 2, {"A": 56, "B": 70, "C": 87, "D": 106}),
        RoomTypeDefinition("big-single", "Big Single Room", 1, {"A": 83, "B": 108, "C": 139, "D": 169}),
        RoomTypeDefinition("double", "Double Room", 2, {"A": 47, "B": 57, "C": 69, "D": 90}),
        RoomTypeDefinition("triple", "Triple Room", 3, {"A": 47, "B": 57, "C": 69, "D": 90}),
        RoomTypeDefinition("single", "Single Room", 1, {"A": 70, "B": 88, "C": 110, "D": 144}),
        RoomTypeDefinition("family", "Family Room", 4, {"A": 47, "B": 57, "C": 69, "D": 90}),
        RoomTypeDefinition("apartment", "Apartment", 3, {"A": 47, "B": 57, "C": 69, "D": 90}),
        RoomTypeDefinition(
            "rooftop-apartment",
            "401 Rooftop Apartment",
            2,
            {"A": 250, "B": 300, "C": 360, "D": 450},
        ),
    )
}

PRICING_TIERS: dict[str, PricingTier] = {
    tier.tier_id: tier
    for tier in (
        PricingTier("2026-standard", "2026 Standard", {"A": 1.0, "B": 1.0, "C": 1.0, "D": 1.0}, True),
        PricingTier("2025-standard", "2025 Standard", {"A": 1.0, "B": 1.0, "C": 1.0, "D": 1.0}),
        PricingTier("agency-tui", "TUI Agency Rates", {"A": 0.85, "B": 0.90, "C": 0.95, "D": 0.90}),
        PricingTier("agency-local", "Local Travel Agency", {"A": 0.80, "B": 0.85, "C": 0.90, "D": 0.85}),
    )
}

ROOFTOP_RULES = RoomRules(
    minimum_nights=4,
    cleaning_days_between=1,
    fixed_pricing=True,
    included_parking_spaces=3,
)

# Room numbers 01..18 repeat on floors 1-3; the rooftop unit sits alone on floor 4.
FLOOR_PATTERN: tuple[str, ...] = (
    "family",
    "double",
    "double",
    "double",
    "double",
    "triple",
    "triple",
    "double",
    "double",
    "double",
    "double",
    "double",
    "double",
    "double",
    "triple",
    "triple",
    "double",
    "single",
)


def build_room(
    number: str,
    floor: int,
    room_type: str,
    *,
    is_premium: bool = False,
    rules: RoomRules | None = None,
) -> Room:
    definition = ROOM_TYPES[room_type]
    return Room(
        room_id=f"room-{number}",
        number=number,
        floor=floor,
        room_type=room_type,
        max_occupancy=definition.max_occupancy,
        seasonal_rates=dict(definition.seasonal_rates),
        is_premium=is_premium,
        rules=rules or RoomRules(),
    )


def build_hotel_rooms() -> list[Room]:
    rooms: list[Room] = []
    for floor in range(1, 4):
        for index, room_type in enumerate(FLOOR_PATTERN, start=1):
            rooms.append(build_room(f"{floor}{index:02d}", floor, room_type))
    rooms.append(
        build_room("401", 4, "rooftop-apartment", is_premium=True, rules=ROOFTOP_RULES)
    )
    return rooms


def get_pricing_tier(tier_id: str) -> PricingTier | None:
    return PRICING_TIERS.get(tier_id)
