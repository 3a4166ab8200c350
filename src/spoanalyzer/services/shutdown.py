"""Process-wide shutdown flag checked by the server loop."""
import logging
import threading

logger = logging.getLogger(__name__)


class ShutdownController:
    """
    Shutdown request shared by the shutdown endpoint and the server loop.

    The endpoint only sets the flag; the server notices it on its next
    tick, stops accepting connections and returns.
    """

    def __init__(self):
        self._event = threading.Event()

    def request_shutdown(self) -> None:
        """Ask the server loop to stop."""
        if not self._event.is_set():
            logger.info("Shutdown requested")
        self._event.set()

    def is_shutdown_requested(self) -> bool:
        return self._event.is_set()
