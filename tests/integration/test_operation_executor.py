"""Integration tests for OperationExecutor."""
import sys
from unittest.mock import MagicMock
import pytest
from spoanalyzer.core.enums import OperationStatus, OperationType
from spoanalyzer.worker.credentials import CredentialForwarder
from spoanalyzer.worker.operation_executor import OperationExecutor
from tests.factories.tenant_factory import StaticSessionStrategy


@pytest.mark.integration
class TestOperationExecutor:
    """Test execution on the calling thread and on a worker thread."""

    def test_execute_publishes_result(self, state, session_forwarder, credentials):
        operation = state.try_begin(OperationType.ENRICHMENT)
        executor = OperationExecutor(state, forwarder=session_forwarder)

        result = executor.execute(lambda context: {"Enriched": 1}, operation, credentials)

        assert result.success is True
        assert result.result == {"Enriched": 1}
        assert state.snapshot().result == {"Enriched": 1}
        assert state.status == OperationStatus.COMPLETED

    def test_execute_captures_error_details(self, state):
        operation = state.try_begin(OperationType.SITES)
        executor = OperationExecutor(state)

        def work(context):
            raise ValueError("bad site url")

        result = executor.execute(work, operation)

        assert result.success is False
        assert result.error_message == "bad site url"
        assert result.error_details["type"] == "ValueError"
        assert "bad site url" in result.error_details["traceback"]
        assert state.snapshot().error == "bad site url"

    def test_exception_without_message_uses_type_name(self, state):
        operation = state.try_begin(OperationType.SITES)

        def work(context):
            raise KeyError()

        OperationExecutor(state).execute(work, operation)

        assert state.snapshot().error == "KeyError"

    def test_session_closed_after_success(self, state, session_forwarder, fake_session, credentials):
        operation = state.try_begin(OperationType.SITES)

        OperationExecutor(state, forwarder=session_forwarder).execute(lambda context: None, operation, credentials)

        assert fake_session.closed is True

    def test_session_closed_after_failure(self, state, session_forwarder, fake_session, credentials):
        operation = state.try_begin(OperationType.SITES)

        def work(context):
            raise RuntimeError("boom")

        OperationExecutor(state, forwarder=session_forwarder).execute(work, operation, credentials)

        assert fake_session.closed is True
        assert state.status == OperationStatus.FAILED

    def test_close_error_does_not_escape(self, state, credentials):
        session = MagicMock()
        session.close.side_effect = RuntimeError("socket already closed")
        forwarder = CredentialForwarder(strategies=[StaticSessionStrategy(session)])
        operation = state.try_begin(OperationType.SITES)

        result = OperationExecutor(state, forwarder=forwarder).execute(lambda context: None, operation, credentials)

        assert result.success is True
        assert state.status == OperationStatus.COMPLETED

    def test_no_credentials_skips_forwarding(self, state):
        forwarder = MagicMock()
        operation = state.try_begin(OperationType.SITES)

        OperationExecutor(state, forwarder=forwarder).execute(lambda context: None, operation)

        forwarder.establish.assert_not_called()

    def test_submit_runs_on_daemon_thread(self, state):
        operation = state.try_begin(OperationType.PERMISSIONS, context_param="https://contoso.sharepoint.com/sites/hr")
        seen = []

        def work(context):
            seen.append(context.context_param)

        thread = OperationExecutor(state).submit(work, operation)
        thread.join(timeout=5)

        assert thread.daemon is True
        assert thread.name.startswith("operation-permissions-")
        assert seen == ["https://contoso.sharepoint.com/sites/hr"]
        assert state.status == OperationStatus.COMPLETED

    def test_system_exit_fails_operation_and_propagates(self, state, session_forwarder, fake_session, credentials):
        """Test a work unit calling sys.exit still ends the operation as failed."""
        operation = state.try_begin(OperationType.SITES)

        def work(context):
            context.log("step")
            sys.exit("library called exit")

        with pytest.raises(SystemExit):
            OperationExecutor(state, forwarder=session_forwarder).execute(work, operation, credentials)

        snapshot = state.snapshot()
        assert snapshot.status == OperationStatus.FAILED
        assert snapshot.running is False
        assert snapshot.error == "Operation aborted (SystemExit: library called exit)"
        assert snapshot.messages == ["step", "Error: Operation aborted (SystemExit: library called exit)"]
        assert fake_session.closed is True
