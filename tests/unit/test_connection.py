"""Unit tests for ConnectionManager and TenantAuthenticator."""
from unittest.mock import MagicMock, patch
import pytest
from spoanalyzer.core.exceptions import AuthenticationError, MissingInputError, NotConnectedError
from spoanalyzer.services.connection import ConnectionManager
from spoanalyzer.tenant.auth import TenantAuthenticator, get_authenticator
from tests.factories.tenant_factory import SITE_URL, TENANT_URL


def _connection(token="interactive-token", graph_token="graph-token"):
    authenticator = MagicMock()
    authenticator.acquire_interactive.return_value = {"access_token": token}
    authenticator.acquire_silent.return_value = {"access_token": graph_token} if graph_token else None
    session = MagicMock()
    session.verify.return_value = {"title": "Finance", "url": SITE_URL}
    session.current_user.return_value = "admin@contoso.com"
    return ConnectionManager(
        authenticator_factory=lambda client_id: authenticator,
        session_factory=lambda url, access_token: session,
    )


@pytest.mark.unit
class TestConnectionManager:
    """Test connection state and the credentials captured for operations."""

    def test_starts_disconnected(self):
        connection = ConnectionManager()

        assert connection.connected is False
        with pytest.raises(NotConnectedError):
            connection.credentials()

    def test_seeded_with_client_id_is_connected(self):
        """Test a configured tenant and client id can re-authenticate silently."""
        connection = ConnectionManager(tenant_url=TENANT_URL + "/", client_id="client-abc")

        credentials = connection.credentials()

        assert connection.connected is True
        assert credentials.tenant_url == TENANT_URL
        assert credentials.client_id == "client-abc"
        assert credentials.access_token is None

    def test_connect_captures_token(self):
        connection = _connection()

        info = connection.connect(SITE_URL, "client-abc")

        assert info.site_title == "Finance"
        assert info.user_principal == "admin@contoso.com"
        assert connection.credentials().access_token == "interactive-token"
        assert connection.credentials().graph_token == "graph-token"

    def test_connect_without_graph_token(self):
        """Test a tenant that refuses Graph still connects, without enrichment."""
        connection = _connection(graph_token=None)

        connection.connect(SITE_URL, "client-abc")

        assert connection.credentials().access_token == "interactive-token"
        assert connection.credentials().graph_token is None

    def test_connect_requires_both_fields(self):
        with pytest.raises(MissingInputError):
            _connection().connect("", "client-abc")

    def test_returned_info_is_a_copy(self):
        connection = _connection()
        info = connection.connect(SITE_URL, "client-abc")
        info.site_url = "https://elsewhere"

        assert connection.info.site_url == SITE_URL

    def test_demo_mode_has_no_credentials(self):
        connection = ConnectionManager(tenant_url=TENANT_URL, client_id="client-abc")
        connection.activate_demo()

        assert connection.connected is True
        assert connection.demo_mode is True
        with pytest.raises(NotConnectedError):
            connection.credentials()


@pytest.mark.unit
class TestTenantAuthenticator:
    """Test MSAL token acquisition with a mocked public client."""

    @pytest.fixture
    def msal_app(self):
        with patch("spoanalyzer.tenant.auth.msal.PublicClientApplication") as app_cls:
            yield app_cls.return_value

    def test_interactive_login(self, msal_app):
        msal_app.acquire_token_interactive.return_value = {"access_token": "abc"}

        token = TenantAuthenticator("client-abc").acquire_interactive(["scope"])

        assert token["access_token"] == "abc"
        msal_app.acquire_token_interactive.assert_called_once_with(scopes=["scope"])

    def test_headless_uses_device_flow(self, msal_app):
        msal_app.initiate_device_flow.return_value = {"user_code": "XYZ", "message": "Go to https://microsoft.com/devicelogin"}
        msal_app.acquire_token_by_device_flow.return_value = {"access_token": "abc"}

        TenantAuthenticator("client-abc").acquire_interactive(["scope"], headless=True)

        msal_app.acquire_token_interactive.assert_not_called()
        msal_app.acquire_token_by_device_flow.assert_called_once()

    def test_device_flow_start_failure(self, msal_app):
        msal_app.initiate_device_flow.return_value = {"error_description": "AADSTS7000218"}

        with pytest.raises(AuthenticationError, match="AADSTS7000218"):
            TenantAuthenticator("client-abc").acquire_interactive(["scope"], headless=True)

    def test_failed_login_raises(self, msal_app):
        msal_app.acquire_token_interactive.return_value = {"error": "access_denied"}

        with pytest.raises(AuthenticationError, match="access_denied"):
            TenantAuthenticator("client-abc").acquire_interactive(["scope"])

    def test_silent_without_accounts(self, msal_app):
        msal_app.get_accounts.return_value = []

        assert TenantAuthenticator("client-abc").acquire_silent(["scope"]) is None
        msal_app.acquire_token_silent.assert_not_called()

    def test_silent_with_cached_account(self, msal_app):
        msal_app.get_accounts.return_value = [{"username": "admin@contoso.com"}]
        msal_app.acquire_token_silent.return_value = {"access_token": "refreshed"}

        token = TenantAuthenticator("client-abc").acquire_silent(["scope"])

        assert token["access_token"] == "refreshed"

    def test_cache_written_to_file(self, msal_app, tmp_path):
        cache_file = tmp_path / "token_cache.json"
        msal_app.acquire_token_interactive.return_value = {"access_token": "abc"}
        authenticator = TenantAuthenticator("client-abc", cache_path=str(cache_file))

        with patch.object(authenticator, "_cache") as cache:
            cache.has_state_changed = True
            cache.serialize.return_value = "{}"
            authenticator.acquire_interactive(["scope"])

        assert cache_file.read_text(encoding="utf-8") == "{}"

    def test_authenticator_shared_per_client_id(self, msal_app):
        """Test connect and worker re-authentication see the same token cache."""
        first = get_authenticator("client-abc")

        assert get_authenticator("client-abc") is first
        assert get_authenticator("client-xyz") is not first
