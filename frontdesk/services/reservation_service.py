"""Reservation workflow: validate, price, then mutate optimistically."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional
from uuid import uuid4

from frontdesk.domain.catalog import build_hotel_rooms
from frontdesk.domain.models import (
    BookingDraft,
    BookingValidationError,
    ExistingGuestRef,
    GuestComposition,
    NewGuestDraft,
    OperationStatus,
    PricingBreakdown,
    Reservation,
    Room,
)
from frontdesk.repository.data_repository import (
    DataRepository,
    ReservationGateway,
    SqliteReservationGateway,
)
from frontdesk.services.availability_service import AvailabilityIndex, stay_instants
from frontdesk.services.notification_service import LoggingNotifier, Notifier
from frontdesk.services.optimistic_service import (
    MutationResult,
    OptimisticMutationCoordinator,
)
from frontdesk.services.pricing_service import (
    PricingRequest,
    PricingService,
    PricingValidationError,
    UnknownRoomError,
)
from frontdesk.services.validation_service import BookingValidator
from frontdesk.utils.config import Settings, get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

UPDATABLE_FIELDS = frozenset(
    {
        "room_id",
        "check_in",
        "check_out",
        "status",
        "guest_id",
        "guest_name",
        "adults",
        "children",
        "total_amount",
    }
)
STAY_FIELDS = frozenset({"room_id", "check_in", "check_out", "adults", "children"})


class ReservationWorkflowError(Exception):
    """Raised when a reservation workflow request is malformed."""


class ReservationNotFoundError(ReservationWorkflowError):
    """Raised when a reservation id is not in the loaded horizon."""


@dataclass(frozen=True)
class WorkflowResult:
    success: bool
    reservation: Optional[Reservation] = None
    pricing: Optional[PricingBreakdown] = None
    errors: tuple[BookingValidationError, ...] = ()
    error: Optional[str] = None
    operation_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "reservation": self.reservation.to_dict() if self.reservation else None,
            "pricing": self.pricing.to_dict() if self.pricing else None,
            "errors": [error.to_dict() for error in self.errors],
            "error": self.error,
            "operation_id": self.operation_id,
        }


class ReservationWorkflowService:
    """Coordinates validator -> pricing -> optimistic write for every booking change."""

    def __init__(
        self,
        repository: Optional[DataRepository] = None,
        settings: Optional[Settings] = None,
        availability: Optional[AvailabilityIndex] = None,
        pricing_service: Optional[PricingService] = None,
        coordinator: Optional[OptimisticMutationCoordinator] = None,
        gateway: Optional[ReservationGateway] = None,
        notifier: Optional[Notifier] = None,
        rooms: Optional[Iterable[Room]] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._repository = repository or DataRepository(self._settings)
        self._availability = availability or AvailabilityIndex()
        self._pricing_service = pricing_service or PricingService(settings=self._settings)
        self._coordinator = coordinator or OptimisticMutationCoordinator(settings=self._settings)
        self._gateway = gateway or SqliteReservationGateway(self._repository)
        self._notifier = notifier or LoggingNotifier()
        self._rooms: dict[str, Room] = {}
        self._horizon: Optional[tuple[date, date]] = None
        self.load_rooms(rooms if rooms is not None else build_hotel_rooms())
        self._validator = BookingValidator(
            rooms=self._rooms,
            availability=self._availability,
            guest_lookup=self._repository.get_guest_name,
        )

    @property
    def availability(self) -> AvailabilityIndex:
        return self._availability

    @property
    def coordinator(self) -> OptimisticMutationCoordinator:
        return self._coordinator

    @property
    def pricing_service(self) -> PricingService:
        return self._pricing_service

    @property
    def rooms(self) -> list[Room]:
        return sorted(self._rooms.values(), key=lambda room: (room.floor, room.number))

    def get_room(self, room_id: str) -> Room:
        room = self._rooms.get(room_id)
        if room is None:
            raise UnknownRoomError(f"Unknown room '{room_id}'")
        return room

    def load_rooms(self, rooms: Iterable[Room]) -> None:
        # Mutated in place so the validator keeps seeing the same mapping.
        self._rooms.clear()
        self._rooms.update({room.room_id: room for room in rooms})

    def load_horizon(self, start: Optional[date] = None, end: Optional[date] = None) -> int:
        """Replace the availability index with the reservations overlapping the horizon."""
        start = start or date.today()
        end = end or start + timedelta(days=self._settings.availability_horizon_days)
        reservations = self._repository.list_reservations(start, end)
        self._availability.load(reservations)
        self._horizon = (start, end)
        logger.info(
            "Horizon loaded | start=%s | end=%s | reservations=%s",
            start.isoformat(),
            end.isoformat(),
            len(reservations),
        )
        return len(reservations)

    def _in_flight(self) -> set[Any]:
        """Ids and stays of reservations with a mutation awaiting the store."""
        keys: set[Any] = set()
        for operation in self._coordinator.get_operations_by_status(OperationStatus.PENDING):
            for record in (operation.original, operation.new):
                if isinstance(record, Reservation):
                    keys.add(record.reservation_id)
                    keys.add((record.room_id, record.check_in, record.check_out))
        return keys

    async def _ensure_loaded(self, check_in: Optional[datetime], check_out: Optional[datetime]) -> None:
        """Merge stored stays around ``[check_in, check_out)`` when the horizon does not cover them."""
        if check_in is None or check_out is None or check_in >= check_out:
            return
        padding = timedelta(
            days=1 + max((room.rules.cleaning_days_between for room in self._rooms.values()), default=0)
        )
        start = check_in.date() - padding
        end = check_out.date() + padding
        if self._horizon is not None and self._horizon[0] <= start and end <= self._horizon[1]:
            return

        busy = self._in_flight()
        stored = await asyncio.to_thread(self._repository.list_reservations, start, end)
        # Ids under an in-flight mutation keep their optimistic state.
        busy |= self._in_flight()
        merged = 0
        for reservation in stored:
            stay_key = (reservation.room_id, reservation.check_in, reservation.check_out)
            if reservation.reservation_id in busy or stay_key in busy:
                continue
            if self._availability.get(reservation.reservation_id) is not None:
                continue
            self._availability.add(reservation)
            merged += 1

        if self._horizon is not None and start <= self._horizon[1] and self._horizon[0] <= end:
            # Only contiguous windows widen the covered range.
            self._horizon = (min(self._horizon[0], start), max(self._horizon[1], end))
        logger.info(
            "Stored stays merged | start=%s | end=%s | merged=%s",
            start.isoformat(),
            end.isoformat(),
            merged,
        )

    def stay(self, check_in_day: date, check_out_day: date) -> tuple[datetime, datetime]:
        return stay_instants(
            check_in_day,
            check_out_day,
            check_in_hour=self._settings.check_in_hour,
            check_out_hour=self._settings.check_out_hour,
        )

    def quote(self, draft: BookingDraft) -> PricingBreakdown:
        if not draft.room_id:
            raise PricingValidationError("Room selection required")
        if draft.check_in is None or draft.check_out is None:
            raise PricingValidationError("Check-in and check-out are required")
        room = self.get_room(draft.room_id)
        return self._pricing_service.calculate(
            PricingRequest(
                room=room,
                check_in=draft.check_in,
                check_out=draft.check_out,
                guests=draft.guests,
                has_pets=draft.has_pets,
                needs_parking=draft.needs_parking,
                additional_charges=draft.additional_charges,
                pricing_tier_id=draft.pricing_tier_id,
                vip_discount_percentage=draft.vip_discount_percentage,
            )
        )

    def validate(self, draft: BookingDraft, require_guest: bool = True) -> list[BookingValidationError]:
        return self._validator.validate(draft, require_guest=require_guest)

    def _reject(self, errors: list[BookingValidationError]) -> WorkflowResult:
        self._notifier.warning("Booking not saved", errors[0].message)
        return WorkflowResult(success=False, errors=tuple(errors), error=errors[0].message)

    def _finish(self, result: MutationResult, title: str, message: str, **extra: Any) -> WorkflowResult:
        if result.success:
            self._notifier.success(title, message)
            return WorkflowResult(success=True, operation_id=result.operation_id, **extra)
        self._notifier.error(f"{title} failed", result.error or "Unknown error")
        return WorkflowResult(
            success=False,
            error=result.error,
            operation_id=result.operation_id,
        )

    async def _guest_identity(self, draft: BookingDraft) -> tuple[Optional[str], str]:
        """Read-only guest resolution; new guests are written with the reservation."""
        guest = draft.guest
        if isinstance(guest, NewGuestDraft):
            return None, guest.name
        if isinstance(guest, ExistingGuestRef):
            name = await asyncio.to_thread(self._repository.get_guest_name, guest.guest_id)
            return guest.guest_id, name or ""
        return None, ""

    async def _store_new(self, reservation: Reservation, guest: Any) -> Reservation:
        if not isinstance(guest, NewGuestDraft):
            return await self._gateway.create(reservation)
        guest_id = await asyncio.to_thread(self._repository.create_guest, guest)
        try:
            return await self._gateway.create(replace(reservation, guest_id=guest_id))
        except BaseException:
            # Synchronous so the guest row is removed even when cancelled.
            self._repository.delete_guest(guest_id)
            logger.info("Guest discarded after failed create | guest_id=%s", guest_id)
            raise

    async def create_reservation(self, draft: BookingDraft) -> WorkflowResult:
        await self._ensure_loaded(draft.check_in, draft.check_out)
        guest_id, guest_name = await self._guest_identity(draft)

        # No await between the conflict check and the optimistic add.
        errors = self.validate(draft)
        if errors:
            return self._reject(errors)

        pricing = self.quote(draft)
        room = self.get_room(draft.room_id)
        temporary = Reservation(
            reservation_id=f"temp-{uuid4().hex[:12]}",
            room_id=room.room_id,
            check_in=draft.check_in,
            check_out=draft.check_out,
            status=draft.status,
            guest_id=guest_id,
            guest_name=guest_name,
            adults=draft.guests.adults,
            children=draft.guests.children,
            total_amount=pricing.total,
            has_pets=draft.has_pets,
            needs_parking=draft.needs_parking,
            additional_charges=draft.additional_charges,
            pricing_tier_id=draft.pricing_tier_id,
            vip_discount_percentage=draft.vip_discount_percentage,
        )

        result = await self._coordinator.optimistic_create(
            temporary,
            add_to_state=self._availability.add,
            remove_from_state=self._availability.remove,
            server_create=lambda: self._store_new(temporary, draft.guest),
        )
        stored: Optional[Reservation] = None
        if result.success:
            stored = result.data or temporary
            self._availability.replace(temporary.reservation_id, stored)
        return self._finish(
            result,
            "Reservation created",
            f"Room {room.number} booked for {guest_name or 'guest'}",
            reservation=stored,
            pricing=pricing,
        )

    def _require(self, reservation_id: str) -> Reservation:
        current = self._availability.get(reservation_id)
        if current is None:
            raise ReservationNotFoundError(f"Reservation '{reservation_id}' not found")
        return current

    def _candidate(self, current: Reservation, changes: dict[str, Any]) -> Reservation:
        try:
            return replace(current, **changes)
        except ValueError as exc:
            raise ReservationWorkflowError(str(exc)) from exc

    def _check_stay(
        self,
        current: Reservation,
        changes: dict[str, Any],
    ) -> tuple[list[BookingValidationError], Optional[PricingBreakdown], dict[str, Any]]:
        """Validate a changed stay and re-price it unless the caller set the amount."""
        if not STAY_FIELDS.intersection(changes):
            return [], None, changes
        candidate = self._candidate(current, changes)
        draft = BookingDraft(
            room_id=candidate.room_id,
            check_in=candidate.check_in,
            check_out=candidate.check_out,
            guest=None,
            guests=GuestComposition(adults=candidate.adults, children=candidate.children),
            has_pets=candidate.has_pets,
            needs_parking=candidate.needs_parking,
            additional_charges=candidate.additional_charges,
            pricing_tier_id=candidate.pricing_tier_id,
            vip_discount_percentage=candidate.vip_discount_percentage,
            status=candidate.status,
            exclude_reservation_id=current.reservation_id,
        )
        errors = self._validator.validate(draft, require_guest=False)
        if errors or "total_amount" in changes:
            return errors, None, changes
        pricing = self.quote(draft)
        return [], pricing, {**changes, "total_amount": pricing.total}

    def _update_in_state(self, reservation_id: str, values: Any) -> None:
        self._availability.update(reservation_id, **dict(values))

    async def update_reservation(self, reservation_id: str, **changes: Any) -> WorkflowResult:
        current = self._require(reservation_id)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ReservationWorkflowError(f"Unsupported reservation fields: {sorted(unknown)}")
        if not changes:
            return WorkflowResult(success=True, reservation=current)

        if STAY_FIELDS.intersection(changes):
            candidate = self._candidate(current, changes)
            await self._ensure_loaded(candidate.check_in, candidate.check_out)
            current = self._require(reservation_id)

        errors, pricing, changes = self._check_stay(current, changes)
        if errors:
            return self._reject(errors)

        result = await self._coordinator.optimistic_update(
            current,
            changes,
            self._update_in_state,
            lambda: self._gateway.update(reservation_id, changes),
        )
        return self._finish(
            result,
            "Reservation updated",
            f"Reservation {reservation_id} updated",
            reservation=self._availability.get(reservation_id),
            pricing=pricing,
        )

    async def move_reservation(
        self,
        reservation_id: str,
        room_id: str,
        check_in: datetime,
        check_out: datetime,
    ) -> WorkflowResult:
        """Move and/or resize a stay; the stay is checked against everything but itself."""
        self._require(reservation_id)
        room = self.get_room(room_id)
        await self._ensure_loaded(check_in, check_out)
        current = self._require(reservation_id)

        moved = {"room_id": room_id, "check_in": check_in, "check_out": check_out}
        errors, pricing, changes = self._check_stay(current, moved)
        if errors:
            return self._reject(errors)

        result = await self._coordinator.optimistic_move(
            current,
            room_id,
            check_in,
            check_out,
            self._update_in_state,
            lambda: self._gateway.update(reservation_id, changes),
            extra_changes={"total_amount": changes["total_amount"]},
        )
        return self._finish(
            result,
            "Reservation moved",
            f"Reservation {reservation_id} moved to room {room.number}",
            reservation=self._availability.get(reservation_id),
            pricing=pricing,
        )

    async def delete_reservation(self, reservation_id: str) -> WorkflowResult:
        current = self._require(reservation_id)
        result = await self._coordinator.optimistic_delete(
            current,
            remove_from_state=self._availability.remove,
            add_to_state=self._availability.add,
            server_delete=lambda: self._gateway.delete(reservation_id),
        )
        return self._finish(
            result,
            "Reservation deleted",
            f"Reservation {reservation_id} deleted",
            reservation=current,
        )
