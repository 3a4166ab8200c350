"""CLI entry point for running the dashboard server."""
import argparse
import asyncio
import logging
import sys
import threading
import webbrowser
from spoanalyzer.api.deps import get_connection
from spoanalyzer.config import get_settings
from spoanalyzer.server import run_server

logger = logging.getLogger(__name__)

# Libraries that log every HTTP round trip at INFO
_NOISY_LOGGERS = ("msal", "office365", "httpx", "httpcore", "urllib3", "azure")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure process-wide logging.

    Args:
        level: Root log level name
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Start the SPO Permissions Analyzer dashboard")
    parser.add_argument("--host", default=settings.HOST, help="Host to bind to")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Port to bind to")
    parser.add_argument(
        "--headless",
        action="store_true",
        default=settings.SPO_HEADLESS,
        help="Authenticate with device code instead of a browser popup",
    )
    parser.add_argument(
        "--open-browser",
        action="store_true",
        default=settings.OPEN_BROWSER,
        help="Open the dashboard in the default browser",
    )
    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().LOG_LEVEL)

    get_connection().headless = args.headless
    if args.headless:
        logger.info("Headless mode: sign-in uses the device code flow")

    if args.open_browser:
        url = f"http://{args.host}:{args.port}/"
        threading.Timer(1.0, webbrowser.open, args=[url]).start()

    try:
        asyncio.run(run_server(args.host, args.port))
    except KeyboardInterrupt:
        logger.info("Server interrupted")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
