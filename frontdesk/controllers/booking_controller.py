"""HTTP controller layer for quoting, availability and reservation changes."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, model_validator

from frontdesk.controllers.dependencies import get_reservation_service
from frontdesk.domain.models import (
    BookingDraft,
    ExistingGuestRef,
    GuestChild,
    GuestComposition,
    NewGuestDraft,
    ReservationStatus,
    Room,
)
from frontdesk.services.pricing_service import PricingValidationError, UnknownRoomError
from frontdesk.services.reporting_service import ReportingValidationError, calendar_statistics
from frontdesk.services.reservation_service import (
    ReservationNotFoundError,
    ReservationWorkflowError,
    ReservationWorkflowService,
    WorkflowResult,
)
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(tags=["bookings"])


class ChildRequest(BaseModel):
    age: int
    name: str = ""


class NewGuestRequest(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    nationality: str = ""


class BookingRequest(BaseModel):
    """Booking form payload; incomplete forms reach the validator unchanged."""

    room_id: Optional[str] = None
    check_in: Optional[date] = None
    check_out: Optional[date] = None
    guest_id: Optional[str] = None
    new_guest: Optional[NewGuestRequest] = None
    adults: int = 1
    children: list[ChildRequest] = Field(default_factory=list)
    has_pets: bool = False
    needs_parking: bool = False
    additional_charges: float = Field(default=0.0, ge=0.0)
    pricing_tier_id: Optional[str] = None
    vip_discount_percentage: float = Field(default=0.0, ge=0.0, le=100.0)
    status: ReservationStatus = ReservationStatus.CONFIRMED

    def to_draft(self, service: ReservationWorkflowService) -> BookingDraft:
        check_in = check_out = None
        if self.check_in is not None and self.check_out is not None:
            check_in, check_out = service.stay(self.check_in, self.check_out)
        elif self.check_in is not None:
            check_in, _ = service.stay(self.check_in, self.check_in + timedelta(days=1))

        guest = None
        if self.guest_id:
            guest = ExistingGuestRef(guest_id=self.guest_id)
        elif self.new_guest is not None:
            guest = NewGuestDraft(**self.new_guest.model_dump())

        return BookingDraft(
            room_id=self.room_id,
            check_in=check_in,
            check_out=check_out,
            guest=guest,
            guests=GuestComposition(
                adults=self.adults,
                children=tuple(GuestChild(age=child.age, name=child.name) for child in self.children),
            ),
            has_pets=self.has_pets,
            needs_parking=self.needs_parking,
            additional_charges=Decimal(str(self.additional_charges)),
            pricing_tier_id=self.pricing_tier_id,
            vip_discount_percentage=self.vip_discount_percentage,
            status=self.status,
        )


class UpdateReservationRequest(BaseModel):
    status: Optional[ReservationStatus] = None
    guest_name: Optional[str] = None
    adults: Optional[int] = Field(default=None, ge=1)
    children: Optional[list[ChildRequest]] = None
    total_amount: Optional[float] = Field(default=None, ge=0.0)


class MoveReservationRequest(BaseModel):
    room_id: str
    check_in: date
    check_out: date

    @model_validator(mode="after")
    def validate_range(self) -> "MoveReservationRequest":
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be after check_in")
        return self


class RoomResponse(BaseModel):
    room_id: str
    number: str
    floor: int
    room_type: str
    max_occupancy: int
    seasonal_rates: dict[str, float]
    is_premium: bool
    minimum_nights: int
    cleaning_days_between: int
    fixed_pricing: bool

    @classmethod
    def from_room(cls, room: Room) -> "RoomResponse":
        return cls(
            room_id=room.room_id,
            number=room.number,
            floor=room.floor,
            room_type=room.room_type,
            max_occupancy=room.max_occupancy,
            seasonal_rates=dict(room.seasonal_rates),
            is_premium=room.is_premium,
            minimum_nights=room.rules.minimum_nights,
            cleaning_days_between=room.rules.cleaning_days_between,
            fixed_pricing=room.rules.fixed_pricing,
        )


def _require_room(service: ReservationWorkflowService, room_id: str) -> Room:
    try:
        return service.get_room(room_id)
    except UnknownRoomError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


def _mutation_response(result: WorkflowResult) -> dict[str, Any]:
    if result.errors:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"errors": [error.to_dict() for error in result.errors]},
        )
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": "Change was rolled back",
                "error": result.error,
                "operation_id": result.operation_id,
            },
        )
    return result.to_dict()


@router.get("/health")
async def health(
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    return {"status": "ok", "rooms": len(service.rooms), "reservations": len(service.availability)}


@router.get("/rooms", response_model=list[RoomResponse])
async def list_rooms(
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> list[RoomResponse]:
    return [RoomResponse.from_room(room) for room in service.rooms]


@router.post("/quote")
async def quote(
    payload: BookingRequest,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    try:
        return service.quote(payload.to_draft(service)).to_dict()
    except UnknownRoomError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PricingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


@router.post("/validate")
async def validate_booking(
    payload: BookingRequest,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    errors = service.validate(payload.to_draft(service))
    return {"valid": not errors, "errors": [error.to_dict() for error in errors]}


@router.get("/rooms/{room_id}/occupied_dates")
async def occupied_dates(
    room_id: str,
    start: date,
    end: date,
    exclude_reservation_id: Optional[str] = None,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    _require_room(service, room_id)
    if end <= start:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="end must be after start",
        )
    dates = service.availability.occupied_dates(room_id, start, end, exclude_reservation_id)
    return {"room_id": room_id, "dates": [day.isoformat() for day in dates]}


@router.get("/rooms/{room_id}/max_checkout")
async def max_checkout(
    room_id: str,
    check_in: date,
    exclude_reservation_id: Optional[str] = None,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    _require_room(service, room_id)
    limit = service.availability.max_checkout_for(room_id, check_in, exclude_reservation_id)
    return {"room_id": room_id, "max_checkout": limit.isoformat() if limit else None}


@router.get("/rooms/{room_id}/is_free")
async def is_free(
    room_id: str,
    day: date,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    _require_room(service, room_id)
    return {
        "room_id": room_id,
        "day": day.isoformat(),
        "free": service.availability.is_date_free(room_id, day),
    }


@router.get("/reservations")
async def list_reservations(
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> list[dict[str, Any]]:
    return [reservation.to_dict() for reservation in service.availability.snapshot()]


@router.post("/reservations", status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: BookingRequest,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    try:
        result = await service.create_reservation(payload.to_draft(service))
    except Exception as exc:
        logger.exception("Unexpected create failure | room_id=%s", payload.room_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Reservation creation failed",
        ) from exc
    return _mutation_response(result)


@router.patch("/reservations/{reservation_id}")
async def update_reservation(
    reservation_id: str,
    payload: UpdateReservationRequest,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    changes = payload.model_dump(exclude_unset=True)
    if "children" in changes:
        changes["children"] = tuple(
            GuestChild(age=child["age"], name=child["name"]) for child in changes["children"] or []
        )
    if "total_amount" in changes and changes["total_amount"] is not None:
        changes["total_amount"] = Decimal(str(changes["total_amount"]))
    changes = {key: value for key, value in changes.items() if value is not None}
    try:
        result = await service.update_reservation(reservation_id, **changes)
    except ReservationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ReservationWorkflowError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return _mutation_response(result)


@router.post("/reservations/{reservation_id}/move")
async def move_reservation(
    reservation_id: str,
    payload: MoveReservationRequest,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    _require_room(service, payload.room_id)
    check_in, check_out = service.stay(payload.check_in, payload.check_out)
    try:
        result = await service.move_reservation(reservation_id, payload.room_id, check_in, check_out)
    except ReservationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ReservationWorkflowError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
    return _mutation_response(result)


@router.delete("/reservations/{reservation_id}")
async def delete_reservation(
    reservation_id: str,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    try:
        result = await service.delete_reservation(reservation_id)
    except ReservationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return _mutation_response(result)


@router.get("/statistics")
async def statistics(
    start: date,
    end: date,
    service: ReservationWorkflowService = Depends(get_reservation_service),
) -> dict[str, Any]:
    try:
        return calendar_statistics(
            service.availability.snapshot(),
            start,
            end,
            room_count=len(service.rooms),
        )
    except ReportingValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc
