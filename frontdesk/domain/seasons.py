"""Seasonal period classification on year-independent month/day ranges."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Sequence, Union


# Leap reference year so 29 February has an ordinal.
_REFERENCE_YEAR = 2000


class ConfigurationError(Exception):
    """Raised when the season table does not cover a calendar day."""


@dataclass(frozen=True)
class SeasonRange:
    period: str
    start: tuple[int, int]
    end: tuple[int, int]

    @property
    def wraps_year(self) -> bool:
        return _ordinal(*self.start) > _ordinal(*self.end)

    def contains(self, day_ordinal: int) -> bool:
        start = _ordinal(*self.start)
        end = _ordinal(*self.end)
        if start > end:
            return day_ordinal >= start or day_ordinal <= end
        return start <= day_ordinal <= end


SEASON_TABLE: tuple[SeasonRange, ...] = (
    SeasonRange("A", (1, 4), (4, 1)),
    SeasonRange("A", (10, 25), (12, 29)),
    SeasonRange("B", (4, 2), (5, 21)),
    SeasonRange("B", (9, 27), (10, 24)),
    SeasonRange("B", (12, 30), (1, 3)),
    SeasonRange("C", (5, 22), (7, 9)),
    SeasonRange("C", (9, 1), (9, 26)),
    SeasonRange("D", (7, 10), (8, 31)),
)

# Tourism tax band per pricing period, independent of the rate tables.
TOURISM_TAX_BANDS: dict[str, str] = {
    "A": "low",
    "B": "low",
    "C": "high",
    "D": "high",
}


def _ordinal(month: int, day: int) -> int:
    return date(_REFERENCE_YEAR, month, day).timetuple().tm_yday


def get_seasonal_period(
    value: Union[date, datetime],
    table: Sequence[SeasonRange] = SEASON_TABLE,
) -> str:
    """Return the period letter for the calendar day of ``value``; year is ignored."""
    day_ordinal = _ordinal(value.month, value.day)
    for season_range in table:
        if season_range.contains(day_ordinal):
            return season_range.period
    raise ConfigurationError(
        f"No seasonal period covers {value.month:02d}-{value.day:02d}"
    )


def tourism_tax_band(period: str) -> str:
    try:
        return TOURISM_TAX_BANDS[period]
    except KeyError as exc:
        raise ConfigurationError(f"No tourism tax band for period '{period}'") from exc


def validate_season_table(table: Sequence[SeasonRange] = SEASON_TABLE) -> None:
    """Check that the table partitions all 366 days with no gaps or overlaps."""
    gaps: list[str] = []
    overlaps: list[str] = []
    current = date(_REFERENCE_YEAR, 1, 1)
    while current.year == _REFERENCE_YEAR:
        day_ordinal = current.timetuple().tm_yday
        matches = {
            season_range.period
            for season_range in table
            if season_range.contains(day_ordinal)
        }
        hits = sum(1 for season_range in table if season_range.contains(day_ordinal))
        label = current.strftime("%m-%d")
        if hits == 0:
            gaps.append(label)
        elif hits > 1:
            overlaps.append(f"{label}({','.join(sorted(matches))})")
        current += timedelta(days=1)

    if gaps or overlaps:
        raise ConfigurationError(
            f"Season table is not a partition | gaps={gaps} | overlaps={overlaps}"
        )
