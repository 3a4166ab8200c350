"""Connection, status and shutdown API endpoints."""
import logging
from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import JSONResponse
from spoanalyzer.api.deps import get_connection, get_coordinator, get_shutdown_controller, get_store
from spoanalyzer.api.schemas.connection import ConnectRequest, ConnectResponse, MetricsResponse, StatusResponse
from spoanalyzer.api.schemas.response import SimpleResponse
from spoanalyzer.core.exceptions import AuthenticationError, TenantConnectionError
from spoanalyzer.services.analysis_store import AnalysisStore
from spoanalyzer.services.connection import ConnectionManager
from spoanalyzer.services.coordinator import OperationCoordinator
from spoanalyzer.services.shutdown import ShutdownController
from spoanalyzer.worker.handlers.demo_handler import load_demo_dataset

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/status", response_model=StatusResponse)
async def get_status(
    coordinator: OperationCoordinator = Depends(get_coordinator),
    connection: ConnectionManager = Depends(get_connection),
    store: AnalysisStore = Depends(get_store),
) -> StatusResponse:
    """Connection state, running flag and dataset totals."""
    info = connection.info
    return StatusResponse(
        connected=connection.connected,
        demoMode=info.demo_mode,
        headless=connection.headless,
        operationRunning=coordinator.is_running,
        siteUrl=info.site_url,
        user=info.user_principal,
        analyzedSite=store.analyzed_site,
        metrics=MetricsResponse(**store.metrics()),
    )


@router.post("/connect", response_model=ConnectResponse)
def connect(
    request: ConnectRequest,
    connection: ConnectionManager = Depends(get_connection),
    store: AnalysisStore = Depends(get_store),
):
    """
    Log in to the tenant and verify access to the site.

    - Interactive browser login, or device code when headless
    - Blocks until login finishes, so it runs on the threadpool
    - Datasets from a previous connection or demo mode are dropped
    - 400 with {success: false, message} if login or verification fails
    """
    try:
        info = connection.connect(request.tenantUrl, request.clientId)
    except (AuthenticationError, TenantConnectionError) as e:
        logger.warning(f"Connection to {request.tenantUrl} failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=SimpleResponse(success=False, message=str(e)).model_dump(),
        )

    store.clear()

    return ConnectResponse(
        message=f"Connected to {info.site_title or info.site_url}",
        siteTitle=info.site_title,
        siteUrl=info.site_url,
        user=info.user_principal,
    )


@router.post("/demo", response_model=ConnectResponse)
async def start_demo(
    connection: ConnectionManager = Depends(get_connection),
    store: AnalysisStore = Depends(get_store),
) -> ConnectResponse:
    """Switch to demo mode and load generated sample data."""
    info = connection.activate_demo()
    store.clear()
    load_demo_dataset(store)
    return ConnectResponse(
        message="Demo mode activated",
        siteTitle=info.site_title,
        siteUrl=info.site_url,
        user=info.user_principal,
        demoMode=True,
    )


@router.post("/shutdown", response_model=SimpleResponse)
async def shutdown(
    background_tasks: BackgroundTasks,
    controller: ShutdownController = Depends(get_shutdown_controller),
) -> SimpleResponse:
    """
    Stop the server.

    The flag is set after the response has been sent; the server loop
    notices it on its next tick.
    """
    background_tasks.add_task(controller.request_shutdown)
    return SimpleResponse(success=True, message="Server shutting down")
