"""Final gate for booking drafts before any write reaches the store."""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from frontdesk.domain.models import (
    BookingDraft,
    BookingValidationError,
    ExistingGuestRef,
    NewGuestDraft,
    Room,
    ValidationErrorType,
)
from frontdesk.services.availability_service import AvailabilityIndex
from frontdesk.services.pricing_service import calculate_nights


GuestLookup = Callable[[str], Optional[str]]


class BookingValidator:
    """Collects every problem with a draft; expected failures are returned, never raised."""

    def __init__(
        self,
        rooms: Mapping[str, Room],
        availability: AvailabilityIndex,
        guest_lookup: Optional[GuestLookup] = None,
    ) -> None:
        self._rooms = rooms
        self._availability = availability
        self._guest_lookup = guest_lookup

    def validate(
        self,
        draft: BookingDraft,
        require_guest: bool = True,
    ) -> list[BookingValidationError]:
        """Return every violation; ``require_guest=False`` skips guest identity checks."""
        errors: list[BookingValidationError] = []
        room = self._rooms.get(draft.room_id) if draft.room_id else None

        form_problems = self._form_problems(draft, room, require_guest)
        dates_usable = (
            draft.check_in is not None
            and draft.check_out is not None
            and calculate_nights(draft.check_in, draft.check_out) >= 1
        )

        if room is not None and dates_usable:
            conflict_error = self._date_conflict(draft, room)
            if conflict_error is not None:
                errors.append(conflict_error)

            rule_problems = self._room_rule_problems(draft, room)
            if rule_problems:
                errors.append(
                    BookingValidationError(
                        type=ValidationErrorType.ROOM_RULE_VIOLATION,
                        message="; ".join(rule_problems),
                        details=rule_problems,
                    )
                )

        if room is not None and draft.guests.total_guests > room.max_occupancy:
            errors.append(
                BookingValidationError(
                    type=ValidationErrorType.CAPACITY_VIOLATION,
                    message=(
                        f"Room {room.number} sleeps at most {room.max_occupancy} guests, "
                        f"{draft.guests.total_guests} requested"
                    ),
                    details={
                        "max_occupancy": room.max_occupancy,
                        "requested": draft.guests.total_guests,
                    },
                )
            )

        guest_error = self._unresolved_guest(draft) if require_guest else None
        if guest_error is not None:
            errors.append(guest_error)

        if form_problems:
            errors.append(
                BookingValidationError(
                    type=ValidationErrorType.FORM_INVALID,
                    message=", ".join(form_problems),
                    details=form_problems,
                )
            )
        return errors

    def _form_problems(
        self,
        draft: BookingDraft,
        room: Optional[Room],
        require_guest: bool,
    ) -> list[str]:
        problems: list[str] = []
        if not draft.room_id:
            problems.append("Room selection required")
        elif room is None:
            problems.append(f"Unknown room '{draft.room_id}'")

        if draft.check_in is None:
            problems.append("Check-in date required")
        if draft.check_out is None:
            problems.append("Check-out date required")
        if (
            draft.check_in is not None
            and draft.check_out is not None
            and calculate_nights(draft.check_in, draft.check_out) < 1
        ):
            problems.append("Check-out must be after check-in")

        if draft.guests.adults < 1:
            problems.append("At least 1 adult required")
        if any(child.age < 0 for child in draft.guests.children):
            problems.append("Child ages must not be negative")

        guest = draft.guest
        if not require_guest:
            return problems
        if guest is None:
            problems.append("Please select a guest")
        elif isinstance(guest, NewGuestDraft):
            if not guest.name.strip():
                problems.append("Guest name required")
            if not guest.email.strip():
                problems.append("Guest email required")
            if not guest.phone.strip():
                problems.append("Guest phone required")
        elif not guest.guest_id.strip():
            problems.append("Please select a guest")
        return problems

    def _date_conflict(
        self,
        draft: BookingDraft,
        room: Room,
    ) -> Optional[BookingValidationError]:
        conflict = self._availability.find_conflict(
            room.room_id,
            draft.check_in,
            draft.check_out,
            exclude_reservation_id=draft.exclude_reservation_id,
        )
        if conflict is None:
            return None
        guest_name = conflict.guest_name or conflict.guest_id or "Unknown Guest"
        return BookingValidationError(
            type=ValidationErrorType.DATE_CONFLICT,
            message=f"Room {room.number} is already reserved by {guest_name} for these dates",
            details={
                "reservation_id": conflict.reservation_id,
                "guest_name": guest_name,
                "check_in": conflict.check_in.isoformat(),
                "check_out": conflict.check_out.isoformat(),
            },
        )

    def _room_rule_problems(self, draft: BookingDraft, room: Room) -> list[str]:
        rules = room.rules
        problems: list[str] = []

        nights = calculate_nights(draft.check_in, draft.check_out)
        if nights < rules.minimum_nights:
            problems.append(
                f"Room {room.number} requires minimum {rules.minimum_nights} night stay. "
                f"Selected: {nights} nights"
            )

        if rules.cleaning_days_between > 0:
            previous, following = self._availability.neighbours(
                room.room_id,
                draft.check_in,
                draft.check_out,
                exclude_reservation_id=draft.exclude_reservation_id,
            )
            buffer_days = rules.cleaning_days_between
            if previous is not None:
                gap = (draft.check_in.date() - previous.check_out.date()).days
                if gap < buffer_days:
                    problems.append(
                        f"Room {room.number} needs {buffer_days} cleaning day(s) after the stay "
                        f"ending {previous.check_out.date().isoformat()}"
                    )
            if following is not None:
                gap = (following.check_in.date() - draft.check_out.date()).days
                if gap < buffer_days:
                    problems.append(
                        f"Room {room.number} needs {buffer_days} cleaning day(s) before the stay "
                        f"starting {following.check_in.date().isoformat()}"
                    )
        return problems

    def _unresolved_guest(self, draft: BookingDraft) -> Optional[BookingValidationError]:
        guest = draft.guest
        if not isinstance(guest, ExistingGuestRef) or not guest.guest_id.strip():
            return None
        if self._guest_lookup is None or self._guest_lookup(guest.guest_id) is not None:
            return None
        return BookingValidationError(
            type=ValidationErrorType.GUEST_REQUIRED,
            message=f"Guest '{guest.guest_id}' was not found; select or create a guest",
            details={"guest_id": guest.guest_id},
        )
