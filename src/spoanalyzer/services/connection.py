"""Interactive tenant connection and the credentials handed to operations."""
import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Optional
from spoanalyzer.core.exceptions import MissingInputError, NotConnectedError
from spoanalyzer.services.demo_data import DEMO_TENANT_URL, DEMO_USER
from spoanalyzer.tenant.auth import GRAPH_SCOPES, TenantAuthenticator, get_authenticator, sharepoint_scopes
from spoanalyzer.tenant.client import TenantSession
from spoanalyzer.worker.models import CredentialContext

logger = logging.getLogger(__name__)


@dataclass
class ConnectionInfo:
    """What the dashboard knows about the current tenant connection."""

    tenant_url: Optional[str] = None
    client_id: Optional[str] = None
    access_token: Optional[str] = None
    graph_token: Optional[str] = None
    site_url: Optional[str] = None
    site_title: Optional[str] = None
    user_principal: Optional[str] = None
    demo_mode: bool = False


class ConnectionManager:
    """
    Owns the interactive login of the request side.

    The session used to log in stays here; operations only receive a
    CredentialContext captured at dispatch and open their own session.
    """

    def __init__(
        self,
        tenant_url: Optional[str] = None,
        client_id: Optional[str] = None,
        headless: bool = False,
        authenticator_factory: Optional[Callable[[str], TenantAuthenticator]] = None,
        session_factory: Callable[[str, str], TenantSession] = TenantSession,
    ):
        """
        Initialize connection manager.

        Args:
            tenant_url: Pre-configured tenant URL
            client_id: Pre-configured application (client) id
            headless: Use device code flow for interactive login
            authenticator_factory: Builds an authenticator for a client id
            session_factory: Builds a session from tenant URL and token
        """
        self._lock = threading.Lock()
        self._info = ConnectionInfo(
            tenant_url=tenant_url.rstrip("/") if tenant_url else None,
            client_id=client_id,
            site_url=tenant_url.rstrip("/") if tenant_url else None,
        )
        self.headless = headless
        self._authenticator_factory = authenticator_factory or get_authenticator
        self._session_factory = session_factory

    def connect(self, tenant_url: str, client_id: str) -> ConnectionInfo:
        """
        Log in interactively and verify access to the site.

        Args:
            tenant_url: Tenant or site URL to connect to
            client_id: Application (client) id registered for the tool

        Returns:
            ConnectionInfo: The new connection

        Raises:
            MissingInputError: If tenant URL or client id is empty
            AuthenticationError: If login fails
            TenantConnectionError: If the site cannot be reached with the token
        """
        if not tenant_url or not client_id:
            raise MissingInputError("Both tenantUrl and clientId are required")

        site_url = tenant_url.rstrip("/")
        logger.info(f"Connecting to {site_url} (headless={self.headless})")

        authenticator = self._authenticator_factory(client_id)
        token = authenticator.acquire_interactive(sharepoint_scopes(site_url), headless=self.headless)
        # Same account, second resource: served from the refresh token just cached
        graph = authenticator.acquire_silent(GRAPH_SCOPES)
        if graph is None:
            logger.warning("No Microsoft Graph token for this account, enrichment will not be available")

        session = self._session_factory(site_url, token["access_token"])
        try:
            web = session.verify(site_url)
            user = session.current_user()
        finally:
            session.close()

        info = ConnectionInfo(
            tenant_url=site_url,
            client_id=client_id,
            access_token=token["access_token"],
            graph_token=graph["access_token"] if graph else None,
            site_url=web.get("url") or site_url,
            site_title=web.get("title"),
            user_principal=user,
        )
        with self._lock:
            self._info = info
        logger.info(f"Connected to {info.site_url} as {info.user_principal}")
        return replace(info)

    def activate_demo(self) -> ConnectionInfo:
        """Switch to demo mode; no tenant credentials are involved."""
        info = ConnectionInfo(
            tenant_url=DEMO_TENANT_URL,
            site_url=f"{DEMO_TENANT_URL}/sites/humanresources",
            site_title="Human Resources",
            user_principal=DEMO_USER,
            demo_mode=True,
        )
        with self._lock:
            self._info = info
        logger.info("Demo mode activated")
        return replace(info)

    def credentials(self) -> CredentialContext:
        """
        Capture the credentials an operation will forward into its worker.

        Raises:
            NotConnectedError: If there is no tenant URL, or neither a token
                nor a client id to re-authenticate with
        """
        with self._lock:
            info = self._info
            if info.demo_mode or not info.tenant_url or not (info.access_token or info.client_id):
                raise NotConnectedError()
            return CredentialContext(
                access_token=info.access_token,
                tenant_url=info.tenant_url,
                client_id=info.client_id,
                graph_token=info.graph_token,
            )

    @property
    def info(self) -> ConnectionInfo:
        with self._lock:
            return replace(self._info)

    @property
    def connected(self) -> bool:
        with self._lock:
            info = self._info
            return info.demo_mode or bool(info.tenant_url and (info.access_token or info.client_id))

    @property
    def demo_mode(self) -> bool:
        with self._lock:
            return self._info.demo_mode
