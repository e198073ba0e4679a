"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{value}'") from exc


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got '{value}'") from exc


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    seed_catalog_on_startup: bool

    # Half-day booking model
    check_in_hour: int
    check_out_hour: int

    # Statutory rates
    accommodation_vat_rate: float
    services_vat_rate: float
    tourism_tax_low_rate: float
    tourism_tax_high_rate: float

    # Ancillary fees, VAT-exclusive
    pet_fee: float
    parking_fee_per_night: float

    short_stay_min_nights: int
    short_stay_supplement_rate: float

    default_pricing_tier_id: str
    optimistic_rollback_retention_seconds: float
    availability_horizon_days: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; tests call ``get_settings.cache_clear()``."""
    return Settings(
        app_name=_env_str("FRONTDESK_APP_NAME", "Front Desk Booking Engine"),
        app_version=_env_str("FRONTDESK_APP_VERSION", "2026.1.0"),
        log_level=_env_str("FRONTDESK_LOG_LEVEL", "INFO"),
        database_path=Path(
            _env_str(
                "FRONTDESK_DATABASE_PATH",
                str(PROJECT_ROOT / "data" / "frontdesk.db"),
            )
        ),
        seed_catalog_on_startup=_env_bool("FRONTDESK_SEED_CATALOG", True),
        check_in_hour=_env_int("FRONTDESK_CHECK_IN_HOUR", 15),
        check_out_hour=_env_int("FRONTDESK_CHECK_OUT_HOUR", 11),
        accommodation_vat_rate=_env_float("FRONTDESK_ACCOMMODATION_VAT_RATE", 0.13),
        services_vat_rate=_env_float("FRONTDESK_SERVICES_VAT_RATE", 0.25),
        tourism_tax_low_rate=_env_float("FRONTDESK_TOURISM_TAX_LOW", 1.10),
        tourism_tax_high_rate=_env_float("FRONTDESK_TOURISM_TAX_HIGH", 1.60),
        pet_fee=_env_float("FRONTDESK_PET_FEE", 20.00),
        parking_fee_per_night=_env_float("FRONTDESK_PARKING_FEE", 7.00),
        short_stay_min_nights=_env_int("FRONTDESK_SHORT_STAY_MIN_NIGHTS", 3),
        short_stay_supplement_rate=_env_float("FRONTDESK_SHORT_STAY_SUPPLEMENT", 0.20),
        default_pricing_tier_id=_env_str("FRONTDESK_DEFAULT_PRICING_TIER", "2026-standard"),
        optimistic_rollback_retention_seconds=_env_float(
            "FRONTDESK_ROLLBACK_RETENTION_SECONDS",
            5.0,
        ),
        availability_horizon_days=_env_int("FRONTDESK_HORIZON_DAYS", 120),
    )
