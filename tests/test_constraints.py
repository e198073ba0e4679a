"""Tests for pricing configuration validation.

Covers every branch in validate_pricing_config().
"""

from __future__ import annotations

from dataclasses import replace

import pytest

from frontdesk.domain.constraints import PricingConfig, validate_pricing_config
from frontdesk.utils.config import get_settings


def valid_config(**overrides) -> PricingConfig:
    """Return a valid baseline PricingConfig, optionally overriding fields."""
    defaults = {
        "accommodation_vat_rate": 0.13,
        "services_vat_rate": 0.25,
        "tourism_tax_low_rate": 1.10,
        "tourism_tax_high_rate": 1.60,
        "pet_fee": 20.0,
        "parking_fee_per_night": 7.0,
        "short_stay_min_nights": 3,
        "short_stay_supplement_rate": 0.20,
    }
    defaults.update(overrides)
    return PricingConfig(**defaults)


def test_valid_config_passes() -> None:
    validate_pricing_config(valid_config())


def test_config_from_default_settings_passes() -> None:
    get_settings.cache_clear()
    validate_pricing_config(PricingConfig.from_settings(get_settings()))


def test_from_settings_copies_overrides() -> None:
    settings = replace(get_settings(), pet_fee=35.0, short_stay_min_nights=2)
    config = PricingConfig.from_settings(settings)
    assert config.pet_fee == 35.0
    assert config.short_stay_min_nights == 2


@pytest.mark.parametrize(
    "overrides",
    [
        {"accommodation_vat_rate": -0.01},
        {"accommodation_vat_rate": 1.0},
        {"services_vat_rate": -0.5},
        {"services_vat_rate": 1.2},
        {"tourism_tax_low_rate": -1.0},
        {"tourism_tax_high_rate": 1.0},
        {"pet_fee": -1.0},
        {"parking_fee_per_night": -0.01},
        {"short_stay_min_nights": 0},
        {"short_stay_supplement_rate": -0.1},
        {"short_stay_supplement_rate": 1.5},
    ],
)
def test_invalid_values_raise(overrides) -> None:
    with pytest.raises(ValueError):
        validate_pricing_config(valid_config(**overrides))


def test_zero_supplement_and_free_fees_are_allowed() -> None:
    validate_pricing_config(
        valid_config(short_stay_supplement_rate=0.0, pet_fee=0.0, parking_fee_per_night=0.0)
    )
