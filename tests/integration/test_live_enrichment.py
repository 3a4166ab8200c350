"""Integration tests for live enrichment through the default credential forwarding."""
from unittest.mock import patch
import httpx
import pytest
from spoanalyzer.core.enums import OperationStatus, OperationType, StartResult
from spoanalyzer.services.connection import ConnectionManager
from spoanalyzer.services.coordinator import OperationCoordinator
from spoanalyzer.tenant.auth import GRAPH_SCOPES
from spoanalyzer.tenant.client import TenantSession
from spoanalyzer.worker.credentials import FORWARDING_WARNING
from spoanalyzer.worker.handlers.enrichment_handler import ENRICHMENT_DONE_MESSAGE, build_enrichment_work
from tests.factories.tenant_factory import EXTERNAL_LOGIN, SITE_URL

GRAPH_USER = {
    "id": "4b1c",
    "mail": "bob@fabrikam.com",
    "userType": "Guest",
    "accountEnabled": True,
    "createdDateTime": "2023-02-01T10:00:00Z",
    "signInActivity": {"lastSignInDateTime": "2023-03-01T10:00:00.1234567Z"},
}


@pytest.fixture
def msal_app_cls():
    """MSAL public client; silent tokens depend on the requested resource."""
    with patch("spoanalyzer.tenant.auth.msal.PublicClientApplication") as app_cls:
        app = app_cls.return_value
        app.acquire_token_interactive.return_value = {"access_token": "sp-interactive"}
        app.get_accounts.return_value = [{"username": "admin@contoso.com"}]
        app.acquire_token_silent.side_effect = lambda scopes, account: (
            {"access_token": "graph-token"} if scopes == GRAPH_SCOPES else {"access_token": "sp-silent"}
        )
        yield app_cls


@pytest.fixture
def tenant(monkeypatch):
    """SharePoint calls answered locally."""
    monkeypatch.setattr(TenantSession, "verify", lambda self, site_url=None: {"title": "Finance", "url": SITE_URL})
    monkeypatch.setattr(TenantSession, "current_user", lambda self: "admin@contoso.com")


@pytest.fixture
def graph_requests(monkeypatch):
    """Authorization headers of the Graph calls, answered by a mock transport."""
    seen = []

    def handler(request):
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json={"value": [GRAPH_USER]})

    real_client = httpx.Client
    monkeypatch.setattr(
        "spoanalyzer.tenant.client.httpx.Client",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )
    return seen


@pytest.fixture
def scanned_store(store):
    store.replace_site_permissions(
        SITE_URL,
        users=[{"Name": "Bob Partner", "Email": "bob@fabrikam.com", "LoginName": EXTERNAL_LOGIN, "IsExternal": True}],
        groups=[], role_assignments=[], inheritance=[], sharing_links=[],
    )
    return store


def _enrich(connection, store):
    coordinator = OperationCoordinator()
    result = coordinator.try_start(
        OperationType.ENRICHMENT,
        build_enrichment_work(store),
        credentials=connection.credentials(),
    )
    assert result == StartResult.ACCEPTED
    assert coordinator.wait(timeout=5)
    return coordinator.read_progress()


@pytest.mark.integration
class TestLiveEnrichment:
    """Test connect, forwarding and enrichment with the default wiring."""

    def test_silent_reauth_reuses_login_cache(self, msal_app_cls, tenant, graph_requests, scanned_store):
        """Test the worker re-authenticates from the cache filled by connect."""
        connection = ConnectionManager()
        connection.connect(SITE_URL, "client-abc")

        progress = _enrich(connection, scanned_store)

        assert progress.status == OperationStatus.COMPLETED, progress.messages
        assert progress.messages[-1] == ENRICHMENT_DONE_MESSAGE
        assert progress.result["Enriched"] == 1
        assert graph_requests == ["Bearer graph-token"]
        # One public client application for the login and the worker
        assert msal_app_cls.call_count == 1

    def test_token_reuse_still_enriches(self, msal_app_cls, tenant, graph_requests, scanned_store):
        """Test the forwarded Graph token is enough when the cache has no account."""
        connection = ConnectionManager()
        connection.connect(SITE_URL, "client-abc")
        msal_app_cls.return_value.get_accounts.return_value = []

        progress = _enrich(connection, scanned_store)

        assert progress.status == OperationStatus.COMPLETED, progress.messages
        assert FORWARDING_WARNING not in progress.messages
        assert progress.result["StaleAccounts"] == 1
        assert graph_requests == ["Bearer graph-token"]
