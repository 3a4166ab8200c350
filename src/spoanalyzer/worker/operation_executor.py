"""Operation executor: runs one work unit on its own thread."""
import logging
import threading
import time
import traceback
from typing import Optional
from spoanalyzer.observability.metrics import record_operation_failed, record_operation_succeeded
from spoanalyzer.services.operation_state import OperationRecord, OperationState
from spoanalyzer.worker.credentials import CredentialForwarder
from spoanalyzer.worker.models import CredentialContext, ExecutionResult, OperationContext, WorkUnit

logger = logging.getLogger(__name__)


class OperationExecutor:
    """
    Executes work units outside the request loop.

    Handles credential forwarding, error capture and result publication.
    Every outcome, including an unexpected exception, ends up as a write
    on the operation state. Only exceptions outside Exception, such as
    SystemExit, are re-raised once recorded.
    """

    def __init__(
        self,
        state: OperationState,
        forwarder: Optional[CredentialForwarder] = None,
    ):
        """
        Initialize operation executor.

        Args:
            state: Shared operation state the executor reports into
            forwarder: Credential forwarder used to open the tenant session
        """
        self.state = state
        self.forwarder = forwarder or CredentialForwarder()

    def submit(
        self,
        work: WorkUnit,
        operation: OperationRecord,
        credentials: Optional[CredentialContext] = None,
    ) -> threading.Thread:
        """
        Start executing a work unit on a new daemon thread.

        Args:
            work: Work unit to run
            operation: Record of the accepted operation
            credentials: Credentials to forward, None for tenant-less work

        Returns:
            threading.Thread: The started worker thread
        """
        thread = threading.Thread(
            target=self.execute,
            args=(work, operation, credentials),
            name=f"operation-{operation.operation_type}-{operation.operation_id[:8]}",
            daemon=True,
        )
        thread.start()
        return thread

    def execute(
        self,
        work: WorkUnit,
        operation: OperationRecord,
        credentials: Optional[CredentialContext] = None,
    ) -> ExecutionResult:
        """
        Execute a work unit to completion on the calling thread.

        Args:
            work: Work unit to run
            operation: Record of the accepted operation
            credentials: Credentials to forward, None for tenant-less work

        Returns:
            ExecutionResult: Result of execution
        """
        operation_type = str(operation.operation_type)
        started = time.monotonic()
        session = None

        logger.info(f"Executing operation {operation.operation_id} (type: {operation_type})")

        try:
            if credentials is not None:
                session = self.forwarder.establish(credentials, self.state.append_log)

            context = OperationContext(
                self.state,
                session=session,
                context_param=operation.context_param,
            )
            result = work(context)

        except Exception as e:
            error_message = str(e) or type(e).__name__
            error_details = {
                "type": type(e).__name__,
                "traceback": traceback.format_exc(),
            }
            logger.error(f"Operation {operation.operation_id} failed: {error_message}", exc_info=True)
            self.state.fail(error_message)
            record_operation_failed(operation_type, time.monotonic() - started)
            return ExecutionResult(
                success=False,
                error_message=error_message,
                error_details=error_details,
            )

        except BaseException as e:
            # SystemExit and the like still end the thread, but never with the state left RUNNING
            reason = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
            error_message = f"Operation aborted ({reason})"
            logger.error(f"Operation {operation.operation_id} aborted: {error_message}", exc_info=True)
            self.state.fail(error_message)
            record_operation_failed(operation_type, time.monotonic() - started)
            raise

        finally:
            if session is not None:
                self._close_session(session)

        self.state.complete(result)
        record_operation_succeeded(operation_type, time.monotonic() - started)
        logger.info(f"Operation {operation.operation_id} succeeded")
        return ExecutionResult(success=True, result=result)

    @staticmethod
    def _close_session(session) -> None:
        try:
            session.close()
        except Exception as e:
            logger.warning(f"Error closing tenant session: {e}")
