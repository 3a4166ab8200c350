"""FastAPI application factory."""
import logging
from pathlib import Path
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from spoanalyzer.config import get_settings
from spoanalyzer.api.v1 import connection, data, metrics, operations
from spoanalyzer.core.exceptions import MissingInputError, OperationBusyError
from spoanalyzer.observability.metrics import init_system_info
from spoanalyzer.observability.middleware import ErrorHandlingMiddleware, MetricsMiddleware

settings = get_settings()
logger = logging.getLogger(__name__)


async def operation_busy_handler(request: Request, exc: OperationBusyError) -> JSONResponse:
    """Reject a start request while another operation runs."""
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"success": False, "message": str(exc)},
    )


async def missing_input_handler(request: Request, exc: MissingInputError) -> JSONResponse:
    """Reject a request that lacks a required value or a connection."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": str(exc)},
    )


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
    )

    # Add middleware; the last one added runs first
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(MetricsMiddleware)

    # Map domain errors to status codes
    app.add_exception_handler(OperationBusyError, operation_busy_handler)
    app.add_exception_handler(MissingInputError, missing_input_handler)

    # Initialize metrics
    init_system_info(settings.APP_VERSION)

    # Include routers
    app.include_router(operations.router, prefix=settings.API_PREFIX, tags=["operations"])
    app.include_router(connection.router, prefix=settings.API_PREFIX, tags=["connection"])
    app.include_router(data.router, prefix=settings.API_PREFIX, tags=["data"])
    app.include_router(metrics.router)

    # Serve the dashboard, after the API so /api routes take precedence
    if settings.WEB_ROOT and Path(settings.WEB_ROOT).is_dir():
        app.mount("/", StaticFiles(directory=settings.WEB_ROOT, html=True), name="dashboard")
        logger.info(f"Serving dashboard from {settings.WEB_ROOT}")

    return app


# Create app instance
app = create_app()
