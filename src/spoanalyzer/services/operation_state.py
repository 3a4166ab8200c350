"""Shared state of the single background operation."""
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4
from spoanalyzer.core.enums import OperationStatus, OperationType
from spoanalyzer.observability.metrics import update_operation_metrics
from spoanalyzer.services.state_machine import OperationStateMachine


@dataclass
class OperationRecord:
    """Audit metadata of one accepted operation."""

    operation_id: str
    operation_type: OperationType
    context_param: Optional[str] = None
    user_principal: Optional[str] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        """Elapsed seconds, up to now while the operation is still running."""
        end = self.completed_at or datetime.now(timezone.utc)
        return (end - self.started_at).total_seconds()


@dataclass
class ProgressSnapshot:
    """
    Consistent copy of the operation state taken under one lock acquisition.

    Polling clients only ever see snapshots, never the live log list.
    """

    messages: List[str]
    status: OperationStatus
    error: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    operation_type: Optional[OperationType] = None

    @property
    def running(self) -> bool:
        return self.status == OperationStatus.RUNNING

    @property
    def complete(self) -> bool:
        return self.status != OperationStatus.RUNNING


class OperationState:
    """
    Lock-guarded record shared by the request loop and the worker thread.

    Holds the status, the append-only progress log, the optional error and
    result, and the context parameter of the current operation. It owns no
    business logic; every read and write goes through the same lock.
    """

    def __init__(self):
        """Initialize idle state."""
        self._lock = threading.Lock()
        self._status = OperationStatus.IDLE
        self._log: List[str] = []
        self._error: Optional[str] = None
        self._result: Optional[Dict[str, Any]] = None
        self._context_param: Optional[str] = None
        self._operation: Optional[OperationRecord] = None

    def try_begin(
        self,
        operation_type: OperationType,
        context_param: Optional[str] = None,
        user_principal: Optional[str] = None,
    ) -> Optional[OperationRecord]:
        """
        Atomically check that no operation runs and reset for a new one.

        Args:
            operation_type: Kind of operation being started
            context_param: Operation input the worker reads later (e.g. site URL)
            user_principal: Account the operation runs as, for the audit summary

        Returns:
            Optional[OperationRecord]: Record of the accepted operation, or
            None if an operation is already running (nothing is changed)
        """
        with self._lock:
            if not OperationStateMachine.can_start(self._status):
                return None

            self._log = []
            self._error = None
            self._result = None
            self._context_param = context_param
            self._operation = OperationRecord(
                operation_id=str(uuid4()),
                operation_type=operation_type,
                context_param=context_param,
                user_principal=user_principal,
            )
            self._status = OperationStatus.RUNNING
            update_operation_metrics(True)
            return replace(self._operation)

    def append_log(self, message: str) -> None:
        """Append one progress message to the log."""
        with self._lock:
            self._log.append(message)

    def complete(self, result: Optional[Dict[str, Any]] = None) -> None:
        """
        Publish the result and mark the operation completed.

        Args:
            result: Optional operation-specific result payload
        """
        with self._lock:
            OperationStateMachine.validate_transition(self._status, OperationStatus.COMPLETED)
            self._result = result
            self._finish(OperationStatus.COMPLETED)

    def fail(self, error_message: str) -> None:
        """
        Record a failure: log it, set the error and mark the operation failed.

        Args:
            error_message: Message of the exception that ended the operation
        """
        with self._lock:
            OperationStateMachine.validate_transition(self._status, OperationStatus.FAILED)
            self._log.append(f"Error: {error_message}")
            self._error = error_message
            self._finish(OperationStatus.FAILED)

    def _finish(self, status: OperationStatus) -> None:
        # Caller holds the lock
        if self._operation is not None:
            self._operation.completed_at = datetime.now(timezone.utc)
        self._status = status
        update_operation_metrics(False)

    def snapshot(self) -> ProgressSnapshot:
        """
        Read the whole state without mutating it.

        Returns:
            ProgressSnapshot: Copy of log, status, error and result
        """
        with self._lock:
            return ProgressSnapshot(
                messages=list(self._log),
                status=self._status,
                error=self._error,
                result=dict(self._result) if self._result is not None else None,
                operation_type=self._operation.operation_type if self._operation else None,
            )

    @property
    def status(self) -> OperationStatus:
        with self._lock:
            return self._status

    @property
    def is_running(self) -> bool:
        with self._lock:
            return self._status == OperationStatus.RUNNING

    def publish_metrics(self) -> None:
        """Re-publish the running gauge under the lock, ordered with transitions."""
        with self._lock:
            update_operation_metrics(self._status == OperationStatus.RUNNING)

    @property
    def context_param(self) -> Optional[str]:
        with self._lock:
            return self._context_param

    def last_operation(self) -> Optional[OperationRecord]:
        """Return a copy of the current or most recent operation record."""
        with self._lock:
            return replace(self._operation) if self._operation else None

    def audit_counts(self) -> tuple[int, int]:
        """Return (event count, error count) of the current log."""
        with self._lock:
            errors = sum(1 for line in self._log if line.startswith("Error:"))
            return len(self._log), errors
