from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from frontdesk.domain.seasons import (
    SEASON_TABLE,
    ConfigurationError,
    SeasonRange,
    get_seasonal_period,
    tourism_tax_band,
    validate_season_table,
)


def test_every_day_of_a_leap_year_maps_to_exactly_one_period() -> None:
    validate_season_table()
    current = date(2028, 1, 1)
    seen = set()
    while current.year == 2028:
        seen.add(get_seasonal_period(current))
        current += timedelta(days=1)
    assert seen == {"A", "B", "C", "D"}


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (date(2026, 1, 1), "B"),
        (date(2026, 1, 3), "B"),
        (date(2026, 1, 4), "A"),
        (date(2026, 4, 1), "A"),
        (date(2026, 4, 2), "B"),
        (date(2026, 5, 22), "C"),
        (date(2026, 7, 9), "C"),
        (date(2026, 7, 10), "D"),
        (date(2026, 8, 31), "D"),
        (date(2026, 9, 1), "C"),
        (date(2026, 9, 27), "B"),
        (date(2026, 10, 25), "A"),
        (date(2026, 12, 29), "A"),
        (date(2026, 12, 30), "B"),
        (date(2026, 12, 31), "B"),
    ],
)
def test_boundary_days(day: date, expected: str) -> None:
    assert get_seasonal_period(day) == expected


def test_february_29_is_classified() -> None:
    assert get_seasonal_period(date(2028, 2, 29)) == "A"


def test_year_is_ignored_and_datetimes_accepted() -> None:
    assert get_seasonal_period(datetime(2019, 7, 20, 15)) == get_seasonal_period(date(2031, 7, 20))


def test_wrapping_range() -> None:
    wrap = SeasonRange("B", (12, 30), (1, 3))
    assert wrap.wraps_year
    assert not SEASON_TABLE[0].wraps_year


def test_gap_in_table_raises_configuration_error() -> None:
    table = tuple(item for item in SEASON_TABLE if item.period != "D")
    with pytest.raises(ConfigurationError, match="gaps"):
        validate_season_table(table)
    with pytest.raises(ConfigurationError):
        get_seasonal_period(date(2026, 8, 1), table)


def test_overlap_in_table_raises_configuration_error() -> None:
    table = SEASON_TABLE + (SeasonRange("C", (8, 1), (8, 2)),)
    with pytest.raises(ConfigurationError, match="overlaps"):
        validate_season_table(table)


def test_tourism_tax_bands() -> None:
    assert tourism_tax_band("A") == "low"
    assert tourism_tax_band("B") == "low"
    assert tourism_tax_band("C") == "high"
    assert tourism_tax_band("D") == "high"
    with pytest.raises(ConfigurationError):
        tourism_tax_band("Z")
