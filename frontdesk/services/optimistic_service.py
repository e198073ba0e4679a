"""Apply-now, confirm-later reservation mutations with automatic rollback.

Every reservation write goes through ``execute_optimistic_update``: the local
state change is applied synchronously, the server call is awaited, and any
failure of that call restores the pre-mutation state before the result is
returned. The coordinator never owns reservation data; it only keeps the
snapshots and undo callables of operations that are still in flight, plus
rolled-back records for a short diagnostic window.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Mapping, Optional, TypeVar
from uuid import uuid4

from frontdesk.domain.models import (
    OperationKind,
    OperationStatus,
    PendingOperation,
    Reservation,
)
from frontdesk.utils.config import Settings, get_settings
from frontdesk.utils.logger import get_logger


logger = get_logger(__name__)

T = TypeVar("T")

StateUpdater = Callable[[str, Mapping[str, Any]], Any]


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    operation_id: Optional[str] = None


@dataclass(frozen=True)
class RollbackSummary:
    success: bool
    operations_rolled_back: int
    error: Optional[str] = None


def _describe(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class OptimisticMutationCoordinator:
    """Tracks in-flight optimistic operations and enforces the rollback contract."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings or get_settings()
        self._retention_seconds = self._settings.optimistic_rollback_retention_seconds
        self._clock = clock
        self._operations: dict[str, PendingOperation] = {}
        self._rollbacks: dict[str, Callable[[], None]] = {}

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [
            operation_id
            for operation_id, operation in self._operations.items()
            if operation.status in (OperationStatus.ROLLED_BACK, OperationStatus.FAILED)
            and operation.completed_at is not None
            and now - operation.completed_at >= self._retention_seconds
        ]
        for operation_id in expired:
            self._operations.pop(operation_id, None)
            self._rollbacks.pop(operation_id, None)

    def _run_rollback(self, operation: PendingOperation) -> bool:
        rollback = self._rollbacks.pop(operation.operation_id, None)
        operation.completed_at = self._clock()
        if rollback is None:
            operation.status = OperationStatus.FAILED
            return False
        try:
            rollback()
        except Exception:
            operation.status = OperationStatus.FAILED
            logger.exception(
                "Rollback failed | operation_id=%s | kind=%s",
                operation.operation_id,
                operation.kind.value,
            )
            return False
        operation.status = OperationStatus.ROLLED_BACK
        return True

    async def execute_optimistic_update(
        self,
        *,
        kind: OperationKind,
        entity_id: str,
        apply: Callable[[], None],
        rollback: Callable[[], None],
        server_call: Callable[[], Awaitable[T]],
        original: Any = None,
        new: Any = None,
        entity: str = "reservation",
    ) -> MutationResult[T]:
        self._purge_expired()
        operation_id = f"{kind.value}-{entity_id}-{uuid4().hex[:12]}"
        operation = PendingOperation(
            operation_id=operation_id,
            kind=kind,
            entity=entity,
            original=original,
            new=new,
            timestamp=time.time(),
        )
        self._operations[operation_id] = operation
        self._rollbacks[operation_id] = rollback

        try:
            apply()
        except Exception as exc:
            self._rollbacks.pop(operation_id, None)
            operation.status = OperationStatus.FAILED
            operation.completed_at = self._clock()
            operation.error = _describe(exc)
            logger.exception("Optimistic apply failed | operation_id=%s", operation_id)
            return MutationResult(success=False, error=operation.error, operation_id=operation_id)

        try:
            data = await server_call()
        except Exception as exc:
            operation.error = _describe(exc)
            logger.warning(
                "Server mutation failed, rolling back | operation_id=%s | error=%s",
                operation_id,
                operation.error,
            )
            if operation.status == OperationStatus.PENDING:
                self._run_rollback(operation)
            return MutationResult(success=False, error=operation.error, operation_id=operation_id)
        except BaseException:
            # Cancellation still undoes the local change before propagating.
            operation.error = "Server call was cancelled"
            logger.warning("Server mutation cancelled, rolling back | operation_id=%s", operation_id)
            if operation.status == OperationStatus.PENDING:
                self._run_rollback(operation)
            raise

        if operation.status != OperationStatus.PENDING:
            # Rolled back by force while the server call was in flight.
            operation.error = "Operation was rolled back before the server confirmed it"
            logger.warning(
                "Server confirmed a rolled back operation | operation_id=%s",
                operation_id,
            )
            return MutationResult(success=False, error=operation.error, operation_id=operation_id)

        operation.status = OperationStatus.SUCCESS
        self._operations.pop(operation_id, None)
        self._rollbacks.pop(operation_id, None)
        logger.info("Optimistic mutation confirmed | operation_id=%s", operation_id)
        return MutationResult(success=True, data=data, operation_id=operation_id)

    async def optimistic_create(
        self,
        reservation: Reservation,
        add_to_state: Callable[[Reservation], None],
        remove_from_state: Callable[[str], Any],
        server_create: Callable[[], Awaitable[Reservation]],
    ) -> MutationResult[Reservation]:
        return await self.execute_optimistic_update(
            kind=OperationKind.CREATE,
            entity_id=reservation.reservation_id,
            new=reservation,
            apply=lambda: add_to_state(reservation),
            rollback=lambda: remove_from_state(reservation.reservation_id),
            server_call=server_create,
        )

    async def optimistic_update(
        self,
        original: Reservation,
        changes: Mapping[str, Any],
        update_in_state: StateUpdater,
        server_update: Callable[[], Awaitable[T]],
        kind: OperationKind = OperationKind.UPDATE,
    ) -> MutationResult[T]:
        changes = dict(changes)
        previous = {field_name: getattr(original, field_name) for field_name in changes}
        return await self.execute_optimistic_update(
            kind=kind,
            entity_id=original.reservation_id,
            original=original,
            new=changes,
            apply=lambda: update_in_state(original.reservation_id, changes),
            rollback=lambda: update_in_state(original.reservation_id, previous),
            server_call=server_update,
        )

    async def optimistic_move(
        self,
        original: Reservation,
        new_room_id: str,
        new_check_in: Any,
        new_check_out: Any,
        update_in_state: StateUpdater,
        server_update: Callable[[], Awaitable[T]],
        extra_changes: Optional[Mapping[str, Any]] = None,
    ) -> MutationResult[T]:
        """Move a stay; ``extra_changes`` such as a re-priced total are undone with it."""
        changes = {"room_id": new_room_id, "check_in": new_check_in, "check_out": new_check_out}
        changes.update(extra_changes or {})
        return await self.optimistic_update(
            original,
            changes,
            update_in_state,
            server_update,
            kind=OperationKind.MOVE,
        )

    async def optimistic_delete(
        self,
        reservation: Reservation,
        remove_from_state: Callable[[str], Any],
        add_to_state: Callable[[Reservation], None],
        server_delete: Callable[[], Awaitable[T]],
    ) -> MutationResult[T]:
        return await self.execute_optimistic_update(
            kind=OperationKind.DELETE,
            entity_id=reservation.reservation_id,
            original=reservation,
            apply=lambda: remove_from_state(reservation.reservation_id),
            rollback=lambda: add_to_state(reservation),
            server_call=server_delete,
        )

    def get_pending_operations(self) -> list[PendingOperation]:
        self._purge_expired()
        return sorted(self._operations.values(), key=lambda item: item.timestamp)

    def get_operations_by_status(self, status: OperationStatus) -> list[PendingOperation]:
        return [
            operation
            for operation in self.get_pending_operations()
            if operation.status == status
        ]

    def force_rollback(self, operation_id: str) -> bool:
        self._purge_expired()
        operation = self._operations.get(operation_id)
        if operation is None or operation.status != OperationStatus.PENDING:
            return False
        rolled_back = self._run_rollback(operation)
        if rolled_back:
            operation.error = "Rolled back on request"
            logger.info("Operation force rolled back | operation_id=%s", operation_id)
        return rolled_back

    def rollback_all_pending(self) -> RollbackSummary:
        pending = self.get_operations_by_status(OperationStatus.PENDING)
        rolled_back = 0
        last_error: Optional[str] = None
        for operation in pending:
            if self.force_rollback(operation.operation_id):
                rolled_back += 1
            else:
                last_error = f"Failed to rollback operation {operation.operation_id}"
        return RollbackSummary(
            success=rolled_back == len(pending),
            operations_rolled_back=rolled_back,
            error=last_error,
        )

    def clear_completed_operations(self) -> int:
        completed = [
            operation.operation_id
            for operation in self._operations.values()
            if operation.status != OperationStatus.PENDING
        ]
        for operation_id in completed:
            self._operations.pop(operation_id, None)
            self._rollbacks.pop(operation_id, None)
        return len(completed)

    def get_statistics(self) -> dict[str, Any]:
        operations = self.get_pending_operations()
        counts = {status: 0 for status in OperationStatus}
        for operation in operations:
            counts[operation.status] += 1
        return {
            "total": len(operations),
            "pending": counts[OperationStatus.PENDING],
            "success": counts[OperationStatus.SUCCESS],
            "failed": counts[OperationStatus.FAILED],
            "rolled_back": counts[OperationStatus.ROLLED_BACK],
            "oldest_operation": min(
                (operation.timestamp for operation in operations),
                default=None,
            ),
        }
