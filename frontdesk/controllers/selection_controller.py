"""Calendar-grid selection gestures; a committed range is checked like a booking form."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from frontdesk.controllers.dependencies import get_reservation_service, get_selection_registry
from frontdesk.domain.models import BookingDraft, GuestComposition
from frontdesk.services.pricing_service import UnknownRoomError
from frontdesk.services.reservation_service import ReservationWorkflowService
from frontdesk.services.selection_service import (
    SelectionError,
    SelectionMachine,
    SelectionRegistry,
)
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/selections", tags=["selections"])


class CellEvent(BaseModel):
    room_id: str
    day: date


def _state(machine: SelectionMachine) -> dict[str, Any]:
    preview = machine.preview
    selection = machine.selection
    return {
        "state": machine.state.value,
        "preview": preview.to_dict() if preview else None,
        "selection": selection.to_dict() if selection else None,
    }


def _apply(action, *args: Any) -> Any:
    try:
        return action(*args)
    except SelectionError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.post("/{desk_id}/click_pm")
async def click_pm(
    desk_id: str,
    event: CellEvent,
    service: ReservationWorkflowService = Depends(get_reservation_service),
    registry: SelectionRegistry = Depends(get_selection_registry),
) -> dict[str, Any]:
    try:
        service.get_room(event.room_id)
    except UnknownRoomError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    machine = registry.for_desk(desk_id)
    _apply(machine.click_pm, event.room_id, event.day)
    return _state(machine)


@router.post("/{desk_id}/hover_am")
async def hover_am(
    desk_id: str,
    event: CellEvent,
    registry: SelectionRegistry = Depends(get_selection_registry),
) -> dict[str, Any]:
    machine = registry.for_desk(desk_id)
    _apply(machine.hover_am, event.room_id, event.day)
    return _state(machine)


@router.post("/{desk_id}/click_am")
async def click_am(
    desk_id: str,
    event: CellEvent,
    service: ReservationWorkflowService = Depends(get_reservation_service),
    registry: SelectionRegistry = Depends(get_selection_registry),
) -> dict[str, Any]:
    machine = registry.for_desk(desk_id)
    selection = _apply(machine.click_am, event.room_id, event.day)
    draft = BookingDraft(
        room_id=selection.room_id,
        check_in=selection.check_in,
        check_out=selection.check_out,
        guest=None,
        guests=GuestComposition(adults=1),
    )
    errors = service.validate(draft, require_guest=False)
    logger.info(
        "Selection committed | desk_id=%s | room_id=%s | errors=%s",
        desk_id,
        selection.room_id,
        len(errors),
    )
    return {
        **_state(machine),
        "valid": not errors,
        "errors": [error.to_dict() for error in errors],
    }


@router.delete("/{desk_id}")
async def cancel(
    desk_id: str,
    registry: SelectionRegistry = Depends(get_selection_registry),
) -> dict[str, Any]:
    registry.discard(desk_id)
    return {"state": "idle", "preview": None, "selection": None}
