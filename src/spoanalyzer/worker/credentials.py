"""Credential forwarding: re-establish a tenant session inside the worker."""
import logging
from typing import Callable, List, Optional, Sequence
from spoanalyzer.observability.metrics import record_credential_forwarding
from spoanalyzer.tenant.auth import GRAPH_SCOPES, TenantAuthenticator, get_authenticator, sharepoint_scopes
from spoanalyzer.tenant.client import TenantSession
from spoanalyzer.worker.models import CredentialContext

logger = logging.getLogger(__name__)

FORWARDING_WARNING = (
    "Warning: could not re-establish the SharePoint session for this operation; "
    "continuing without authentication"
)


class ForwardingStrategy:
    """One way of turning captured credentials into a working session."""

    name = "base"

    def establish(self, credentials: CredentialContext) -> Optional[TenantSession]:
        """
        Try to build a verified session.

        Args:
            credentials: Credentials captured at dispatch time

        Returns:
            Optional[TenantSession]: Session, or None if this strategy does not apply
        """
        raise NotImplementedError


class SilentReauthStrategy(ForwardingStrategy):
    """
    Silent re-authentication through the MSAL token cache.

    Needs the client id; works after the forwarded token expired as long
    as the cache holds a refresh token for the account.
    """

    name = "silent_reauth"

    def __init__(self, authenticator_factory: Optional[Callable[[str], TenantAuthenticator]] = None):
        self._authenticator_factory = authenticator_factory or get_authenticator

    def establish(self, credentials: CredentialContext) -> Optional[TenantSession]:
        if not credentials.client_id:
            return None

        authenticator = self._authenticator_factory(credentials.client_id)
        token = authenticator.acquire_silent(sharepoint_scopes(credentials.tenant_url))
        if token is None:
            return None

        graph_token = authenticator.acquire_silent(GRAPH_SCOPES)
        session = TenantSession(
            credentials.tenant_url,
            token["access_token"],
            graph_token=graph_token["access_token"] if graph_token else credentials.graph_token,
        )
        session.verify()
        return session


class TokenReuseStrategy(ForwardingStrategy):
    """Direct reuse of the access tokens captured at dispatch."""

    name = "token_reuse"

    def establish(self, credentials: CredentialContext) -> Optional[TenantSession]:
        if not credentials.access_token:
            return None

        session = TenantSession(
            credentials.tenant_url,
            credentials.access_token,
            graph_token=credentials.graph_token,
        )
        session.verify()
        return session


class CredentialForwarder:
    """
    Tries forwarding strategies in order, cheapest and most robust first.

    Never raises: when every strategy fails, a warning is reported through
    the operation log and the operation continues without a session, so the
    work unit's own tenant calls surface the concrete error.
    """

    def __init__(self, strategies: Optional[Sequence[ForwardingStrategy]] = None):
        """
        Initialize forwarder.

        Args:
            strategies: Strategies in the order they are attempted
        """
        self.strategies: List[ForwardingStrategy] = list(
            strategies if strategies is not None
            else [SilentReauthStrategy(), TokenReuseStrategy()]
        )

    def establish(
        self,
        credentials: CredentialContext,
        report: Callable[[str], None],
    ) -> Optional[TenantSession]:
        """
        Establish a session for one operation.

        Args:
            credentials: Credentials captured at dispatch time
            report: Appends a line to the operation log

        Returns:
            Optional[TenantSession]: Verified session, or None when all strategies failed
        """
        for strategy in self.strategies:
            try:
                session = strategy.establish(credentials)
            except Exception as e:
                logger.warning(f"Credential forwarding via {strategy.name} failed: {e}")
                record_credential_forwarding(strategy.name, "failed")
                continue

            if session is None:
                record_credential_forwarding(strategy.name, "skipped")
                continue

            logger.info(f"Tenant session established via {strategy.name}")
            record_credential_forwarding(strategy.name, "success")
            return session

        logger.warning(f"No tenant session for {credentials.tenant_url}, continuing unauthenticated")
        report(FORWARDING_WARNING)
        return None
