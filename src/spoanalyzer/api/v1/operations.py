"""Background operation API endpoints."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends
from spoanalyzer.api.deps import get_connection, get_coordinator, get_store
from spoanalyzer.api.schemas.operation import (
    AuditResponse,
    DemoEnrichResponse,
    PermissionsRequest,
    ProgressResponse,
)
from spoanalyzer.api.schemas.response import OperationStartedResponse
from spoanalyzer.config import get_settings
from spoanalyzer.core.enums import DataType, OperationStatus, OperationType, StartResult
from spoanalyzer.core.exceptions import MissingInputError, OperationBusyError
from spoanalyzer.services.analysis_store import AnalysisStore
from spoanalyzer.services.connection import ConnectionManager
from spoanalyzer.services.coordinator import OperationCoordinator
from spoanalyzer.services.demo_data import demo_graph_lookup
from spoanalyzer.worker.handlers.demo_handler import build_demo_permissions_work, build_demo_sites_work
from spoanalyzer.worker.handlers.enrichment_handler import build_enrichment_work, enrich_external_users
from spoanalyzer.worker.handlers.permissions_handler import build_permissions_work
from spoanalyzer.worker.handlers.sites_handler import build_sites_work
from spoanalyzer.worker.models import CredentialContext, WorkUnit

logger = logging.getLogger(__name__)

router = APIRouter()


def _dispatch(
    coordinator: OperationCoordinator,
    connection: ConnectionManager,
    operation_type: OperationType,
    work: WorkUnit,
    credentials: Optional[CredentialContext],
    context_param: Optional[str] = None,
) -> None:
    """
    Hand a work unit to the coordinator.

    Raises:
        OperationBusyError: If another operation is running
    """
    result = coordinator.try_start(
        operation_type,
        work,
        context_param=context_param,
        credentials=credentials,
        user_principal=connection.info.user_principal,
    )
    if result == StartResult.BUSY:
        raise OperationBusyError()


@router.post("/sites", response_model=OperationStartedResponse)
async def start_sites_scan(
    coordinator: OperationCoordinator = Depends(get_coordinator),
    connection: ConnectionManager = Depends(get_connection),
    store: AnalysisStore = Depends(get_store),
) -> OperationStartedResponse:
    """
    Start enumerating the tenant's site collections.

    - Returns immediately; poll /progress for the log
    - 400 if not connected, 409 if another operation is running
    """
    if connection.demo_mode:
        work, credentials = build_demo_sites_work(store), None
    else:
        credentials = connection.credentials()
        work = build_sites_work(store)

    _dispatch(coordinator, connection, OperationType.SITES, work, credentials)
    return OperationStartedResponse(message="Sites scan started")


@router.post("/permissions", response_model=OperationStartedResponse)
async def start_permissions_scan(
    request: Optional[PermissionsRequest] = None,
    coordinator: OperationCoordinator = Depends(get_coordinator),
    connection: ConnectionManager = Depends(get_connection),
    store: AnalysisStore = Depends(get_store),
) -> OperationStartedResponse:
    """
    Start analyzing the permissions of one site.

    The site defaults to the connected site when the body has no siteUrl.
    """
    site_url = (request.siteUrl if request else None) or connection.info.site_url
    if not site_url:
        raise MissingInputError("Site URL is required")
    site_url = site_url.rstrip("/")

    if connection.demo_mode:
        work, credentials = build_demo_permissions_work(store, site_url), None
    else:
        credentials = connection.credentials()
        work = build_permissions_work(store, site_url)

    _dispatch(coordinator, connection, OperationType.PERMISSIONS, work, credentials, context_param=site_url)
    return OperationStartedResponse(message=f"Permissions analysis started for {site_url}")


@router.post("/enrich")
async def start_enrichment(
    coordinator: OperationCoordinator = Depends(get_coordinator),
    connection: ConnectionManager = Depends(get_connection),
    store: AnalysisStore = Depends(get_store),
):
    """
    Enrich external users with Microsoft Graph data.

    Live mode runs as a background operation. Demo mode enriches
    synchronously from generated directory data.
    """
    if not store.get(DataType.USERS):
        raise MissingInputError("No users loaded. Run a permissions analysis first.")

    settings = get_settings()
    if connection.demo_mode:
        if coordinator.is_running:
            raise OperationBusyError()
        summary = enrich_external_users(
            store,
            demo_graph_lookup,
            logger.debug,
            settings.STALE_ACCOUNT_DAYS,
        )
        return DemoEnrichResponse(
            enriched=summary["Enriched"],
            totalExternal=summary["TotalExternal"],
            message=f"Enriched {summary['Enriched']} of {summary['TotalExternal']} external users",
        )

    credentials = connection.credentials()
    work = build_enrichment_work(store, settings.STALE_ACCOUNT_DAYS)
    _dispatch(coordinator, connection, OperationType.ENRICHMENT, work, credentials)
    return OperationStartedResponse(message="External user enrichment started")


@router.get("/progress", response_model=ProgressResponse, response_model_exclude_none=True)
async def get_progress(
    coordinator: OperationCoordinator = Depends(get_coordinator),
) -> ProgressResponse:
    """
    Poll the current operation.

    Pure read; never fails and never changes state.
    """
    return ProgressResponse.from_snapshot(coordinator.read_progress())


@router.get("/audit", response_model=AuditResponse)
async def get_audit(
    coordinator: OperationCoordinator = Depends(get_coordinator),
) -> AuditResponse:
    """Summarise the current or most recent operation."""
    operation = coordinator.state.last_operation()
    if operation is None:
        return AuditResponse(hasSession=False, status=str(OperationStatus.IDLE))

    event_count, error_count = coordinator.state.audit_counts()
    return AuditResponse(
        hasSession=True,
        sessionId=operation.operation_id,
        operationType=str(operation.operation_type),
        status=str(coordinator.state.status),
        userPrincipal=operation.user_principal,
        contextParam=operation.context_param,
        startedAt=operation.started_at,
        duration=operation.duration_seconds,
        eventCount=event_count,
        errorCount=error_count,
    )
