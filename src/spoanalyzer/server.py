"""HTTP request loop serving the dashboard API."""
import logging
from typing import Optional
import uvicorn
from fastapi import FastAPI
from spoanalyzer.api.deps import get_coordinator, get_shutdown_controller
from spoanalyzer.config import get_settings
from spoanalyzer.services.shutdown import ShutdownController

logger = logging.getLogger(__name__)


class DashboardServer(uvicorn.Server):
    """
    uvicorn server that also stops on a shutdown request from the API.

    uvicorn ticks its main loop every 100 ms; each tick checks the
    shutdown flag, so the server exits shortly after the flag is set,
    closing its listening socket on the way out.
    """

    def __init__(self, config: uvicorn.Config, shutdown_controller: ShutdownController):
        """
        Initialize server.

        Args:
            config: uvicorn configuration
            shutdown_controller: Flag set by POST /api/shutdown
        """
        super().__init__(config)
        self.shutdown_controller = shutdown_controller

    async def on_tick(self, counter: int) -> bool:
        if self.shutdown_controller.is_shutdown_requested() and not self.should_exit:
            logger.info("Shutdown flag set, stopping server")
            self.should_exit = True
        return await super().on_tick(counter)


async def run_server(
    host: Optional[str] = None,
    port: Optional[int] = None,
    app: Optional[FastAPI] = None,
) -> None:
    """
    Serve the API until shutdown is requested or the process is interrupted.

    Args:
        host: Interface to bind (settings.HOST if None)
        port: Port to bind (settings.PORT if None)
        app: Application to serve (spoanalyzer.main.app if None)
    """
    settings = get_settings()
    if app is None:
        from spoanalyzer.main import app

    config = uvicorn.Config(
        app,
        host=host or settings.HOST,
        port=port or settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=settings.DEBUG,
    )
    server = DashboardServer(config, get_shutdown_controller())

    logger.info(f"Listening on http://{config.host}:{config.port}")
    await server.serve()

    coordinator = get_coordinator()
    if coordinator.is_running:
        # Worker is a daemon thread; it dies with the process
        logger.warning("Server stopped while an operation was still running, its results are lost")
    logger.info("Server stopped")
