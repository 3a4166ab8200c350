"""Shared pytest fixtures for all tests."""
import pytest
from spoanalyzer.config import get_settings
from spoanalyzer.services.analysis_store import AnalysisStore
from spoanalyzer.services.operation_state import OperationState
from spoanalyzer.worker.credentials import CredentialForwarder
from spoanalyzer.worker.models import CredentialContext
from tests.factories.tenant_factory import FakeTenantSession, StaticSessionStrategy, TENANT_URL


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset module-level singletons before and after each test.

    Waits for a worker thread left running by a test so it cannot write
    into the next test's state.
    """
    from spoanalyzer.api import deps
    from spoanalyzer.tenant import auth

    get_settings.cache_clear()
    auth._authenticators.clear()
    deps._coordinator = None
    deps._store = None
    deps._connection = None
    deps._shutdown_controller = None

    yield

    if deps._coordinator is not None:
        deps._coordinator.wait(timeout=10)
    deps._coordinator = None
    deps._store = None
    deps._connection = None
    deps._shutdown_controller = None
    auth._authenticators.clear()


@pytest.fixture
def state():
    """Fresh idle operation state."""
    return OperationState()


@pytest.fixture
def store():
    """Fresh empty analysis store."""
    return AnalysisStore()


@pytest.fixture
def fake_session():
    """Fake tenant session with two sites and one external user."""
    return FakeTenantSession()


@pytest.fixture
def credentials():
    """Credentials as captured at dispatch time."""
    return CredentialContext(access_token="token-123", tenant_url=TENANT_URL, client_id="client-abc")


@pytest.fixture
def session_forwarder(fake_session):
    """Forwarder that always yields the fake session."""
    return CredentialForwarder(strategies=[StaticSessionStrategy(fake_session)])
