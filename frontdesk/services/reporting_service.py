"""Occupancy and revenue statistics for a calendar window."""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable

import numpy as np
import pandas as pd

from frontdesk.domain.models import Reservation, ReservationStatus
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)


class ReportingValidationError(Exception):
    """Raised when a statistics window is malformed."""


def _reservation_frame(reservations: Iterable[Reservation]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "reservation_id": reservation.reservation_id,
                "room_id": reservation.room_id,
                "check_in": pd.Timestamp(reservation.check_in.date()),
                "check_out": pd.Timestamp(reservation.check_out.date()),
                "status": reservation.status.value,
                "total_amount": float(reservation.total_amount),
            }
            for reservation in reservations
        ],
        columns=["reservation_id", "room_id", "check_in", "check_out", "status", "total_amount"],
    )


def calendar_statistics(
    reservations: Iterable[Reservation],
    start: date,
    end: date,
    room_count: int,
) -> dict[str, Any]:
    """Summarise reservations overlapping ``[start, end)``.

    Room-nights are clipped to the window, so a stay straddling the window edge
    only contributes the nights inside it. Room closures count as occupied but
    never as revenue.
    """
    if end <= start:
        raise ReportingValidationError("end must be after start")
    if room_count < 0:
        raise ReportingValidationError("room_count must be >= 0")

    window_start = pd.Timestamp(start)
    window_end = pd.Timestamp(end)
    frame = _reservation_frame(reservations)
    frame = frame[(frame["check_in"] < window_end) & (frame["check_out"] > window_start)].copy()

    available_nights = room_count * (end - start).days
    if frame.empty:
        return {
            "total_reservations": 0,
            "occupancy_rate": 0.0,
            "status_breakdown": {},
            "revenue_projection": 0.0,
        }

    clipped_in = frame["check_in"].clip(lower=window_start)
    clipped_out = frame["check_out"].clip(upper=window_end)
    frame["occupied_nights"] = np.maximum((clipped_out - clipped_in).dt.days, 0)

    occupied_nights = int(frame["occupied_nights"].sum())
    occupancy_rate = (
        round(min(occupied_nights / available_nights, 1.0) * 100.0, 2)
        if available_nights > 0
        else 0.0
    )
    revenue = frame.loc[frame["status"] != ReservationStatus.ROOM_CLOSURE.value, "total_amount"].sum()

    logger.debug(
        "Calendar statistics | start=%s | end=%s | reservations=%s | occupied_nights=%s",
        start.isoformat(),
        end.isoformat(),
        len(frame),
        occupied_nights,
    )
    return {
        "total_reservations": int(len(frame)),
        "occupancy_rate": occupancy_rate,
        "status_breakdown": {
            str(status): int(count)
            for status, count in frame["status"].value_counts().sort_index().items()
        },
        "revenue_projection": round(float(revenue), 2),
    }
