"""API dependencies for FastAPI."""
from typing import Optional
from spoanalyzer.config import get_settings
from spoanalyzer.services.analysis_store import AnalysisStore
from spoanalyzer.services.connection import ConnectionManager
from spoanalyzer.services.coordinator import OperationCoordinator
from spoanalyzer.services.shutdown import ShutdownController

# Process-wide singletons, created on first use
_coordinator: Optional[OperationCoordinator] = None
_store: Optional[AnalysisStore] = None
_connection: Optional[ConnectionManager] = None
_shutdown_controller: Optional[ShutdownController] = None


def get_coordinator() -> OperationCoordinator:
    """
    Dependency to get the operation coordinator (singleton).

    Returns:
        OperationCoordinator: The one coordinator of this process
    """
    global _coordinator
    if _coordinator is None:
        _coordinator = OperationCoordinator()
    return _coordinator


def get_store() -> AnalysisStore:
    """
    Dependency to get the analysis data store (singleton).

    Returns:
        AnalysisStore: Store holding the scan results
    """
    global _store
    if _store is None:
        _store = AnalysisStore()
    return _store


def get_connection() -> ConnectionManager:
    """
    Dependency to get the connection manager (singleton).

    Seeded from SPO_TENANT_URL, SPO_CLIENT_ID and SPO_HEADLESS.

    Returns:
        ConnectionManager: Connection manager instance
    """
    global _connection
    if _connection is None:
        settings = get_settings()
        _connection = ConnectionManager(
            tenant_url=settings.SPO_TENANT_URL,
            client_id=settings.SPO_CLIENT_ID,
            headless=settings.SPO_HEADLESS,
        )
    return _connection


def get_shutdown_controller() -> ShutdownController:
    """
    Dependency to get the shutdown controller (singleton).

    Returns:
        ShutdownController: Flag checked by the server loop
    """
    global _shutdown_controller
    if _shutdown_controller is None:
        _shutdown_controller = ShutdownController()
    return _shutdown_controller
