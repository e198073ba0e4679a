from __future__ import annotations

from datetime import date, datetime

import pytest

from frontdesk.domain.models import Reservation, ReservationStatus
from frontdesk.services.availability_service import (
    AvailabilityIndex,
    half_day_slot,
    intervals_conflict,
    stay_instants,
)


def _reservation(
    reservation_id: str,
    start: date,
    end: date,
    room_id: str = "room-102",
    status: ReservationStatus = ReservationStatus.CONFIRMED,
) -> Reservation:
    check_in, check_out = stay_instants(start, end)
    return Reservation(
        reservation_id=reservation_id,
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        status=status,
        guest_name=f"Guest {reservation_id}",
    )


@pytest.fixture()
def index() -> AvailabilityIndex:
    return AvailabilityIndex(
        [
            _reservation("r1", date(2026, 7, 10), date(2026, 7, 13)),
            _reservation("r2", date(2026, 7, 20), date(2026, 7, 25)),
            _reservation("r3", date(2026, 7, 14), date(2026, 7, 16), status=ReservationStatus.CHECKED_OUT),
            _reservation("r4", date(2026, 7, 1), date(2026, 7, 31), room_id="room-103"),
        ]
    )


def test_half_day_slots() -> None:
    morning = datetime(2026, 7, 10, 11)
    afternoon = datetime(2026, 7, 10, 15)
    assert half_day_slot(afternoon) == half_day_slot(morning) + 1
    assert half_day_slot(datetime(2026, 7, 11, 0)) == half_day_slot(afternoon) + 1


def test_same_day_turnover_is_not_a_conflict(index: AvailabilityIndex) -> None:
    check_in, check_out = stay_instants(date(2026, 7, 13), date(2026, 7, 15))
    assert not index.has_conflict("room-102", check_in, check_out)

    check_in, check_out = stay_instants(date(2026, 7, 17), date(2026, 7, 20))
    assert not index.has_conflict("room-102", check_in, check_out)


def test_overlap_is_detected(index: AvailabilityIndex) -> None:
    check_in, check_out = stay_instants(date(2026, 7, 12), date(2026, 7, 14))
    conflict = index.find_conflict("room-102", check_in, check_out)
    assert conflict is not None
    assert conflict.reservation_id == "r1"


def test_interval_conflict_is_symmetric() -> None:
    first = stay_instants(date(2026, 7, 10), date(2026, 7, 13))
    second = stay_instants(date(2026, 7, 12), date(2026, 7, 18))
    assert intervals_conflict(*first, *second)
    assert intervals_conflict(*second, *first)


def test_checked_out_reservations_do_not_block(index: AvailabilityIndex) -> None:
    check_in, check_out = stay_instants(date(2026, 7, 14), date(2026, 7, 16))
    assert not index.has_conflict("room-102", check_in, check_out)
    assert index.is_date_free("room-102", date(2026, 7, 14))


def test_exclusion_ignores_the_moved_reservation(index: AvailabilityIndex) -> None:
    check_in, check_out = stay_instants(date(2026, 7, 11), date(2026, 7, 14))
    assert index.has_conflict("room-102", check_in, check_out)
    assert not index.has_conflict("room-102", check_in, check_out, exclude_reservation_id="r1")


def test_other_rooms_are_independent(index: AvailabilityIndex) -> None:
    check_in, check_out = stay_instants(date(2026, 7, 11), date(2026, 7, 12))
    assert not index.has_conflict("room-104", check_in, check_out)


def test_occupied_dates_exclude_check_out_day(index: AvailabilityIndex) -> None:
    dates = index.occupied_dates("room-102", date(2026, 7, 1), date(2026, 7, 22))
    assert dates == [
        date(2026, 7, 10),
        date(2026, 7, 11),
        date(2026, 7, 12),
        date(2026, 7, 20),
        date(2026, 7, 21),
    ]


def test_occupied_dates_window_is_half_open(index: AvailabilityIndex) -> None:
    assert index.occupied_dates("room-102", date(2026, 7, 11), date(2026, 7, 12)) == [date(2026, 7, 11)]


def test_max_checkout_is_next_arrival(index: AvailabilityIndex) -> None:
    assert index.max_checkout_for("room-102", date(2026, 7, 13)) == date(2026, 7, 20)
    assert index.max_checkout_for("room-102", date(2026, 7, 25)) is None
    assert index.max_checkout_for("room-102", datetime(2026, 7, 5, 15)) == date(2026, 7, 10)


def test_is_date_free(index: AvailabilityIndex) -> None:
    assert not index.is_date_free("room-102", date(2026, 7, 10))
    assert index.is_date_free("room-102", date(2026, 7, 13))
    assert not index.is_date_free("room-103", date(2026, 7, 15))


def test_neighbours(index: AvailabilityIndex) -> None:
    check_in, check_out = stay_instants(date(2026, 7, 14), date(2026, 7, 18))
    previous, following = index.neighbours("room-102", check_in, check_out)
    assert previous.reservation_id == "r1"
    assert following.reservation_id == "r2"


def test_mutations_are_visible_to_queries(index: AvailabilityIndex) -> None:
    index.update("r2", check_in=datetime(2026, 7, 26, 15), check_out=datetime(2026, 7, 28, 11))
    assert index.is_date_free("room-102", date(2026, 7, 21))

    removed = index.remove("r1")
    assert removed is not None
    assert index.is_date_free("room-102", date(2026, 7, 11))

    index.add(removed)
    index.replace("r1", _reservation("r1-final", date(2026, 7, 10), date(2026, 7, 13)))
    assert index.get("r1") is None
    assert index.get("r1-final") is not None
    assert len(index) == 4

    with pytest.raises(KeyError):
        index.update("missing", status=ReservationStatus.CHECKED_IN)


def test_reservation_rejects_inverted_range() -> None:
    with pytest.raises(ValueError):
        Reservation(
            reservation_id="bad",
            room_id="room-102",
            check_in=datetime(2026, 7, 12, 15),
            check_out=datetime(2026, 7, 12, 11),
        )
