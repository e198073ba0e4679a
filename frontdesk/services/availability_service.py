"""In-memory availability index over the live reservation collection.

Reservations follow the half-day booking model: a stay occupies the afternoon
slot of its check-in day through the morning slot of its check-out day, so one
guest may check out in the morning and the next check in the same afternoon.
Every query scans the full collection; nothing is cached between mutations.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timedelta
from threading import RLock
from typing import Iterable, Optional, Union

from frontdesk.domain.models import Reservation
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)


def half_day_slot(instant: datetime) -> int:
    """Index of the AM (even) or PM (odd) slot containing ``instant``."""
    return instant.date().toordinal() * 2 + (0 if instant.hour < 12 else 1)


def stay_instants(
    check_in_day: date,
    check_out_day: date,
    check_in_hour: int = 15,
    check_out_hour: int = 11,
) -> tuple[datetime, datetime]:
    return (
        datetime.combine(check_in_day, time(hour=check_in_hour)),
        datetime.combine(check_out_day, time(hour=check_out_hour)),
    )


def intervals_conflict(
    first_check_in: datetime,
    first_check_out: datetime,
    second_check_in: datetime,
    second_check_out: datetime,
) -> bool:
    return (
        half_day_slot(first_check_in) < half_day_slot(second_check_out)
        and half_day_slot(second_check_in) < half_day_slot(first_check_out)
    )


def _as_day(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


class AvailabilityIndex:
    """Owns the reservations of the visible horizon and answers availability queries."""

    def __init__(self, reservations: Iterable[Reservation] = ()) -> None:
        self._lock = RLock()
        self._reservations: dict[str, Reservation] = {}
        self.load(reservations)

    def load(self, reservations: Iterable[Reservation]) -> None:
        with self._lock:
            self._reservations = {
                reservation.reservation_id: reservation for reservation in reservations
            }
        logger.debug("Availability index loaded | reservations=%s", len(self._reservations))

    def add(self, reservation: Reservation) -> None:
        with self._lock:
            self._reservations[reservation.reservation_id] = reservation

    def replace(self, reservation_id: str, reservation: Reservation) -> None:
        """Swap the record stored under ``reservation_id``; the id itself may change."""
        with self._lock:
            self._reservations.pop(reservation_id, None)
            self._reservations[reservation.reservation_id] = reservation

    def update(self, reservation_id: str, **changes: object) -> Reservation:
        with self._lock:
            current = self._reservations.get(reservation_id)
            if current is None:
                raise KeyError(reservation_id)
            updated = replace(current, **changes)
            self._reservations[reservation_id] = updated
            return updated

    def remove(self, reservation_id: str) -> Optional[Reservation]:
        with self._lock:
            return self._reservations.pop(reservation_id, None)

    def get(self, reservation_id: str) -> Optional[Reservation]:
        with self._lock:
            return self._reservations.get(reservation_id)

    def snapshot(self) -> list[Reservation]:
        with self._lock:
            items = list(self._reservations.values())
        return sorted(items, key=lambda item: (item.check_in, item.reservation_id))

    def __len__(self) -> int:
        with self._lock:
            return len(self._reservations)

    def active_for_room(
        self,
        room_id: str,
        exclude_reservation_id: Optional[str] = None,
    ) -> list[Reservation]:
        return [
            reservation
            for reservation in self.snapshot()
            if reservation.room_id == room_id
            and reservation.is_active
            and reservation.reservation_id != exclude_reservation_id
        ]

    def find_conflict(
        self,
        room_id: str,
        check_in: datetime,
        check_out: datetime,
        exclude_reservation_id: Optional[str] = None,
    ) -> Optional[Reservation]:
        for reservation in self.active_for_room(room_id, exclude_reservation_id):
            if intervals_conflict(check_in, check_out, reservation.check_in, reservation.check_out):
                return reservation
        return None

    def has_conflict(
        self,
        room_id: str,
        check_in: datetime,
        check_out: datetime,
        exclude_reservation_id: Optional[str] = None,
    ) -> bool:
        return self.find_conflict(room_id, check_in, check_out, exclude_reservation_id) is not None

    def occupied_dates(
        self,
        room_id: str,
        start: date,
        end: date,
        exclude_reservation_id: Optional[str] = None,
    ) -> list[date]:
        """Fully occupied days within ``[start, end)``; check-out days stay free."""
        occupied: set[date] = set()
        for reservation in self.active_for_room(room_id, exclude_reservation_id):
            current = max(reservation.check_in.date(), start)
            last = min(reservation.check_out.date(), end)
            while current < last:
                occupied.add(current)
                current += timedelta(days=1)
        return sorted(occupied)

    def max_checkout_for(
        self,
        room_id: str,
        check_in: Union[date, datetime],
        exclude_reservation_id: Optional[str] = None,
    ) -> Optional[date]:
        check_in_day = _as_day(check_in)
        later_arrivals = [
            reservation.check_in.date()
            for reservation in self.active_for_room(room_id, exclude_reservation_id)
            if reservation.check_in.date() > check_in_day
        ]
        return min(later_arrivals) if later_arrivals else None

    def is_date_free(self, room_id: str, day: date) -> bool:
        return not any(
            reservation.check_in.date() <= day < reservation.check_out.date()
            for reservation in self.active_for_room(room_id)
        )

    def neighbours(
        self,
        room_id: str,
        check_in: datetime,
        check_out: datetime,
        exclude_reservation_id: Optional[str] = None,
    ) -> tuple[Optional[Reservation], Optional[Reservation]]:
        """Closest stay ending before ``check_in`` and closest starting after ``check_out``."""
        previous: Optional[Reservation] = None
        following: Optional[Reservation] = None
        for reservation in self.active_for_room(room_id, exclude_reservation_id):
            if reservation.check_out <= check_in:
                if previous is None or reservation.check_out > previous.check_out:
                    previous = reservation
            elif reservation.check_in >= check_out:
                if following is None or reservation.check_in < following.check_in:
                    following = reservation
        return previous, following
