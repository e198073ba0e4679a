"""Shared FastAPI dependency providers for controller layer."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from frontdesk.services.optimistic_service import OptimisticMutationCoordinator
from frontdesk.services.reservation_service import ReservationWorkflowService
from frontdesk.services.selection_service import SelectionRegistry


def get_reservation_service(request: Request) -> ReservationWorkflowService:
    service = getattr(request.app.state, "reservation_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reservation service is not initialized",
        )
    return service


def get_coordinator(request: Request) -> OptimisticMutationCoordinator:
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Mutation coordinator is not initialized",
        )
    return coordinator


def get_selection_registry(request: Request) -> SelectionRegistry:
    registry = getattr(request.app.state, "selections", None)
    if registry is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Selection registry is not initialized",
        )
    return registry
