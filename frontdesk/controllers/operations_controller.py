"""Diagnostics and manual recovery for in-flight optimistic operations."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from frontdesk.controllers.dependencies import get_coordinator
from frontdesk.domain.models import OperationStatus
from frontdesk.services.optimistic_service import OptimisticMutationCoordinator
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/operations", tags=["operations"])


@router.get("")
async def list_operations(
    status_filter: Optional[OperationStatus] = Query(default=None, alias="status"),
    coordinator: OptimisticMutationCoordinator = Depends(get_coordinator),
) -> list[dict[str, Any]]:
    operations = (
        coordinator.get_operations_by_status(status_filter)
        if status_filter is not None
        else coordinator.get_pending_operations()
    )
    return [operation.to_dict() for operation in operations]


@router.get("/statistics")
async def operation_statistics(
    coordinator: OptimisticMutationCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    return coordinator.get_statistics()


@router.post("/rollback_all")
async def rollback_all(
    coordinator: OptimisticMutationCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    summary = coordinator.rollback_all_pending()
    if not summary.success:
        logger.warning(
            "Rollback of pending operations incomplete | rolled_back=%s | error=%s",
            summary.operations_rolled_back,
            summary.error,
        )
    return {
        "success": summary.success,
        "operations_rolled_back": summary.operations_rolled_back,
        "error": summary.error,
    }


@router.post("/{operation_id}/rollback")
async def force_rollback(
    operation_id: str,
    coordinator: OptimisticMutationCoordinator = Depends(get_coordinator),
) -> dict[str, Any]:
    if not coordinator.force_rollback(operation_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No pending operation '{operation_id}'",
        )
    return {"operation_id": operation_id, "status": OperationStatus.ROLLED_BACK.value}


@router.delete("/completed")
async def clear_completed(
    coordinator: OptimisticMutationCoordinator = Depends(get_coordinator),
) -> dict[str, int]:
    return {"cleared": coordinator.clear_completed_operations()}
