"""Domain-level validation rules for the pricing configuration."""

from __future__ import annotations

from dataclasses import dataclass

from frontdesk.utils.config import Settings


@dataclass(frozen=True)
class PricingConfig:
    accommodation_vat_rate: float
    services_vat_rate: float
    tourism_tax_low_rate: float
    tourism_tax_high_rate: float
    pet_fee: float
    parking_fee_per_night: float
    short_stay_min_nights: int
    short_stay_supplement_rate: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "PricingConfig":
        return cls(
            accommodation_vat_rate=settings.accommodation_vat_rate,
            services_vat_rate=settings.services_vat_rate,
            tourism_tax_low_rate=settings.tourism_tax_low_rate,
            tourism_tax_high_rate=settings.tourism_tax_high_rate,
            pet_fee=settings.pet_fee,
            parking_fee_per_night=settings.parking_fee_per_night,
            short_stay_min_nights=settings.short_stay_min_nights,
            short_stay_supplement_rate=settings.short_stay_supplement_rate,
        )


def validate_pricing_config(config: PricingConfig) -> None:
    if not 0.0 <= config.accommodation_vat_rate < 1.0:
        raise ValueError("accommodation_vat_rate must be in [0, 1)")
    if not 0.0 <= config.services_vat_rate < 1.0:
        raise ValueError("services_vat_rate must be in [0, 1)")
    if config.tourism_tax_low_rate < 0.0:
        raise ValueError("tourism_tax_low_rate must be >= 0")
    if config.tourism_tax_high_rate < config.tourism_tax_low_rate:
        raise ValueError("tourism_tax_high_rate must be >= tourism_tax_low_rate")
    if config.pet_fee < 0.0:
        raise ValueError("pet_fee must be >= 0")
    if config.parking_fee_per_night < 0.0:
        raise ValueError("parking_fee_per_night must be >= 0")
    if config.short_stay_min_nights < 1:
        raise ValueError("short_stay_min_nights must be >= 1")
    if not 0.0 <= config.short_stay_supplement_rate <= 1.0:
        raise ValueError("short_stay_supplement_rate must be in [0, 1]")
