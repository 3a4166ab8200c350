"""Fixtures for API tests."""
import pytest
from fastapi.testclient import TestClient
from spoanalyzer.main import app
from spoanalyzer.api.deps import get_connection, get_coordinator
from spoanalyzer.services.connection import ConnectionManager
from spoanalyzer.services.coordinator import OperationCoordinator
from tests.factories.tenant_factory import TENANT_URL


@pytest.fixture
def client():
    """
    Create FastAPI test client over the process singletons.

    Returns:
        TestClient: FastAPI test client
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def live_client(session_forwarder):
    """
    Create FastAPI test client connected to a fake tenant.

    The coordinator forwards credentials into the fake session, so live
    work units run without network access.
    """
    coordinator = OperationCoordinator(forwarder=session_forwarder)
    connection = ConnectionManager(tenant_url=TENANT_URL, client_id="client-abc")

    app.dependency_overrides[get_coordinator] = lambda: coordinator
    app.dependency_overrides[get_connection] = lambda: connection

    with TestClient(app) as test_client:
        yield test_client

    coordinator.wait(timeout=10)
    app.dependency_overrides.clear()


