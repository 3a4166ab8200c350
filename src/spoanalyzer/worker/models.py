"""Worker data models and result classes."""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING
from spoanalyzer.core.exceptions import TenantConnectionError

if TYPE_CHECKING:
    from spoanalyzer.services.operation_state import OperationState
    from spoanalyzer.tenant.client import TenantSession


@dataclass(frozen=True)
class CredentialContext:
    """
    Credentials captured from the caller's session at dispatch time.

    Handed to the worker so it can open its own tenant session; never
    persisted and never stored in the operation state.
    """

    access_token: Optional[str]
    tenant_url: str
    client_id: Optional[str] = None
    graph_token: Optional[str] = None

    def __repr__(self) -> str:
        token = "***" if self.access_token else None
        graph = "***" if self.graph_token else None
        return (
            f"CredentialContext(tenant_url={self.tenant_url!r}, "
            f"client_id={self.client_id!r}, access_token={token!r}, graph_token={graph!r})"
        )


@dataclass
class ExecutionResult:
    """
    Result of executing one work unit.

    Tracks whether execution succeeded and any result/error data.
    """

    success: bool
    result: Optional[Dict[str, Any]] = None
    error_message: Optional[str] = None
    error_details: Optional[Dict[str, Any]] = None


class OperationContext:
    """
    What a running work unit sees of the outside world.

    Progress goes through log(), which appends to the shared operation log;
    the tenant session is the one the worker established for this operation.
    """

    def __init__(
        self,
        state: "OperationState",
        session: Optional["TenantSession"] = None,
        context_param: Optional[str] = None,
    ):
        self._state = state
        self.session = session
        self.context_param = context_param

    def log(self, message: str) -> None:
        """Report a progress message to polling clients."""
        self._state.append_log(message)

    def require_session(self) -> "TenantSession":
        """
        Get the tenant session or fail the operation.

        Raises:
            TenantConnectionError: If credential forwarding left no session
        """
        if self.session is None:
            raise TenantConnectionError("No authenticated SharePoint session available")
        return self.session


# A work unit closes over its already-resolved inputs and runs exactly once.
WorkUnit = Callable[[OperationContext], Optional[Dict[str, Any]]]
