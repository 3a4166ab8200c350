"""MSAL token acquisition for SharePoint and Microsoft Graph."""
import logging
import os
import threading
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
import msal
from spoanalyzer.config import get_settings
from spoanalyzer.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

GRAPH_SCOPES = ["https://graph.microsoft.com/.default"]


def sharepoint_scopes(tenant_url: str) -> List[str]:
    """Delegated scope for the SharePoint resource; always the tenant root host."""
    parsed = urlparse(tenant_url)
    return [f"{parsed.scheme}://{parsed.netloc}/.default"]


class TenantAuthenticator:
    """
    Public client token acquisition with an optionally file-backed token cache.

    The cache is what makes silent re-authentication possible from the
    worker thread after the interactive login happened in a request, so
    both sides get the same instance from get_authenticator().
    """

    # PublicClientApplication is not documented as thread-safe
    _cache_lock = threading.Lock()

    def __init__(
        self,
        client_id: str,
        authority: str = "https://login.microsoftonline.com/organizations",
        cache_path: Optional[str] = None,
    ):
        """
        Initialize authenticator.

        Args:
            client_id: Entra ID application (client) id
            authority: Login authority URL
            cache_path: Token cache file; in-memory cache if None
        """
        self.client_id = client_id
        self.cache_path = cache_path
        self._cache = msal.SerializableTokenCache()
        if cache_path and os.path.exists(cache_path):
            with open(cache_path, "r", encoding="utf-8") as f:
                self._cache.deserialize(f.read())

        self._app = msal.PublicClientApplication(
            client_id,
            authority=authority,
            token_cache=self._cache,
        )

    def acquire_interactive(self, scopes: List[str], headless: bool = False) -> Dict[str, Any]:
        """
        Acquire a token with user interaction.

        Headless mode uses the device code flow and writes the code to the
        log, so it shows up in the container output.

        Args:
            scopes: Requested scopes
            headless: Use device code flow instead of a browser popup

        Returns:
            Dict[str, Any]: MSAL token response containing "access_token"

        Raises:
            AuthenticationError: If no token could be acquired
        """
        with self._cache_lock:
            if headless:
                flow = self._app.initiate_device_flow(scopes=scopes)
                if "user_code" not in flow:
                    raise AuthenticationError(
                        f"Could not start device code flow: {flow.get('error_description', 'unknown error')}"
                    )
                logger.warning(flow["message"])
                result = self._app.acquire_token_by_device_flow(flow)
            else:
                result = self._app.acquire_token_interactive(scopes=scopes)
            self._persist_cache()

        if "access_token" not in result:
            raise AuthenticationError(
                f"Authentication failed: {result.get('error_description') or result.get('error', 'unknown error')}"
            )
        return result

    def acquire_silent(self, scopes: List[str]) -> Optional[Dict[str, Any]]:
        """
        Acquire a token from the cache, refreshing it if needed.

        Args:
            scopes: Requested scopes

        Returns:
            Optional[Dict[str, Any]]: Token response, or None if the cache
            holds no usable account
        """
        with self._cache_lock:
            accounts = self._app.get_accounts()
            if not accounts:
                return None
            result = self._app.acquire_token_silent(scopes, account=accounts[0])
            self._persist_cache()

        if not result or "access_token" not in result:
            return None
        return result

    def _persist_cache(self) -> None:
        if self.cache_path and self._cache.has_state_changed:
            with open(self.cache_path, "w", encoding="utf-8") as f:
                f.write(self._cache.serialize())


# One authenticator per client id, so the token cache filled by the
# interactive login is the one the worker re-authenticates from.
_authenticators: Dict[str, TenantAuthenticator] = {}
_authenticators_lock = threading.Lock()


def get_authenticator(client_id: str) -> TenantAuthenticator:
    """
    Get the process-wide authenticator for a client id.

    Args:
        client_id: Entra ID application (client) id

    Returns:
        TenantAuthenticator: Shared authenticator and token cache
    """
    with _authenticators_lock:
        authenticator = _authenticators.get(client_id)
        if authenticator is None:
            settings = get_settings()
            authenticator = TenantAuthenticator(
                client_id,
                authority=settings.SPO_AUTHORITY,
                cache_path=settings.TOKEN_CACHE_PATH,
            )
            _authenticators[client_id] = authenticator
        return authenticator
