"""Calendar date-range selection for the front-desk grid.

A stay is picked with two clicks: the afternoon half of the arrival day,
then the morning half of the departure day on the same room. The machine
only tracks the gesture; availability and pricing are checked by the
reservation workflow once the range is committed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from frontdesk.services.availability_service import stay_instants
from frontdesk.utils.config import Settings, get_settings


class SelectionError(Exception):
    """Raised when an event is not valid in the current selection state."""


class SelectionState(str, Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    COMMITTED = "committed"


@dataclass(frozen=True)
class DateRangeSelection:
    room_id: str
    check_in: datetime
    check_out: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "room_id": self.room_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
        }


class SelectionMachine:
    def __init__(self, check_in_hour: int = 15, check_out_hour: int = 11) -> None:
        self._check_in_hour = check_in_hour
        self._check_out_hour = check_out_hour
        self._state = SelectionState.IDLE
        self._room_id: Optional[str] = None
        self._start_day: Optional[date] = None
        self._preview_day: Optional[date] = None
        self._selection: Optional[DateRangeSelection] = None

    @property
    def state(self) -> SelectionState:
        return self._state

    @property
    def selection(self) -> Optional[DateRangeSelection]:
        return self._selection

    @property
    def preview(self) -> Optional[DateRangeSelection]:
        """Range under the cursor while selecting, if the hover is a valid check-out."""
        if self._state != SelectionState.SELECTING or self._preview_day is None:
            return None
        return self._build(self._preview_day)

    def _build(self, end_day: date) -> DateRangeSelection:
        check_in, check_out = stay_instants(
            self._start_day,
            end_day,
            check_in_hour=self._check_in_hour,
            check_out_hour=self._check_out_hour,
        )
        return DateRangeSelection(room_id=self._room_id, check_in=check_in, check_out=check_out)

    def click_pm(self, room_id: str, day: date) -> None:
        if self._state == SelectionState.SELECTING:
            raise SelectionError("A selection is already in progress; cancel it first")
        self._state = SelectionState.SELECTING
        self._room_id = room_id
        self._start_day = day
        self._preview_day = None
        self._selection = None

    def hover_am(self, room_id: str, day: date) -> None:
        if self._state != SelectionState.SELECTING:
            raise SelectionError("No selection in progress")
        if room_id == self._room_id and day > self._start_day:
            self._preview_day = day
        else:
            self._preview_day = None

    def click_am(self, room_id: str, day: date) -> DateRangeSelection:
        if self._state != SelectionState.SELECTING:
            raise SelectionError("No selection in progress")
        if room_id != self._room_id:
            raise SelectionError("Check-out must be on the same room as check-in")
        if day <= self._start_day:
            raise SelectionError("Check-out must be after check-in")
        self._selection = self._build(day)
        self._state = SelectionState.COMMITTED
        self._preview_day = None
        return self._selection

    def cancel(self) -> None:
        self._state = SelectionState.IDLE
        self._room_id = None
        self._start_day = None
        self._preview_day = None
        self._selection = None


class SelectionRegistry:
    """One selection machine per front-desk session."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._machines: dict[str, SelectionMachine] = {}

    def for_desk(self, desk_id: str) -> SelectionMachine:
        machine = self._machines.get(desk_id)
        if machine is None:
            machine = SelectionMachine(
                check_in_hour=self._settings.check_in_hour,
                check_out_hour=self._settings.check_out_hour,
            )
            self._machines[desk_id] = machine
        return machine

    def discard(self, desk_id: str) -> None:
        self._machines.pop(desk_id, None)
