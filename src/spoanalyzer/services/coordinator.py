"""Single-flight coordinator for background operations."""
import logging
import threading
from typing import Optional
from spoanalyzer.core.enums import OperationType, StartResult
from spoanalyzer.observability.metrics import record_operation_rejected, record_operation_started
from spoanalyzer.services.operation_state import OperationState, ProgressSnapshot
from spoanalyzer.worker.credentials import CredentialForwarder
from spoanalyzer.worker.models import CredentialContext, WorkUnit
from spoanalyzer.worker.operation_executor import OperationExecutor

logger = logging.getLogger(__name__)


class OperationCoordinator:
    """
    Gatekeeper that lets at most one background operation run.

    The busy check and the reset of the shared state happen in one
    critical section of OperationState, so two concurrent start requests
    can never both be accepted.
    """

    def __init__(
        self,
        state: Optional[OperationState] = None,
        executor: Optional[OperationExecutor] = None,
        forwarder: Optional[CredentialForwarder] = None,
    ):
        """
        Initialize coordinator.

        Args:
            state: Shared operation state (new idle state if None)
            executor: Executor running work units (built from state if None)
            forwarder: Credential forwarder for a default executor
        """
        self.state = state or OperationState()
        self.executor = executor or OperationExecutor(self.state, forwarder=forwarder)
        self._thread: Optional[threading.Thread] = None

    def try_start(
        self,
        operation_type: OperationType,
        work: WorkUnit,
        context_param: Optional[str] = None,
        credentials: Optional[CredentialContext] = None,
        user_principal: Optional[str] = None,
    ) -> StartResult:
        """
        Start an operation unless one is already running.

        Returns immediately; the work unit runs on the worker thread.

        Args:
            operation_type: Kind of operation
            work: Fully-formed work unit
            context_param: Operation input recorded before the worker starts
            credentials: Credentials to forward into the worker
            user_principal: Account the operation runs as

        Returns:
            StartResult: ACCEPTED if dispatched, BUSY if rejected without changes
        """
        operation = self.state.try_begin(
            operation_type,
            context_param=context_param,
            user_principal=user_principal,
        )
        if operation is None:
            logger.info(f"Rejected {operation_type} operation, another operation is running")
            record_operation_rejected(str(operation_type))
            return StartResult.BUSY

        logger.info(f"Accepted {operation_type} operation {operation.operation_id}")
        record_operation_started(str(operation_type))
        try:
            self._thread = self.executor.submit(work, operation, credentials)
        except Exception as e:
            # Leave the state startable again
            self.state.fail(f"Could not start worker: {e}")
            raise
        return StartResult.ACCEPTED

    def read_progress(self) -> ProgressSnapshot:
        """Consistent snapshot of the current operation, safe to call at any time."""
        return self.state.snapshot()

    @property
    def is_running(self) -> bool:
        return self.state.is_running

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the current worker thread ends.

        Used on shutdown and in tests; request handlers never call it.

        Args:
            timeout: Maximum seconds to wait, None to wait forever

        Returns:
            bool: True if no worker is alive afterwards
        """
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()
