"""
Application Entry Point.

Startup runs as a fixed sequence: load the configuration, open the log file,
build the app and serve it. The first two steps report failures on the
console and return an error code; a failure to listen is logged and ends the
process.

Usage:
    python -m staticserver
    python -m staticserver --config /etc/staticserver/configuration.ini
"""

import argparse
import sys
from typing import Optional, Sequence

from staticserver.core.errors import ConfigError, ListenError, LogError
from staticserver.core.logging_config import (
    setup_logging,
    share_handlers,
    shutdown_logging,
)
from staticserver.services.web_service_manager import DEFAULT_HOST, WebServer
from staticserver.webserver.config import CONFIG_FILENAME, load_config
from staticserver.webserver.server import create_app

SHARED_LOGGERS = ("uvicorn.error",)


def run(config_path: str = CONFIG_FILENAME, log_to_console: bool = True) -> int:
    """
    Starts the server and blocks until it stops.

    Args:
        config_path: Path to the INI configuration file.
        log_to_console: If True, log records are also printed to stdout.

    Returns:
        int: Exit code (0 after a clean stop, 1 if startup was aborted).
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print(f"Error loading config: {e}")
        return 1

    try:
        logger = setup_logging(config.log_folder, log_to_console=log_to_console)
    except LogError as e:
        print(f"Error setting up logging: {e}")
        return 1

    share_handlers(logger, *SHARED_LOGGERS)
    try:
        logger.info(f"Starting {config.server_name} on port {config.port}")

        app = create_app(config, logger)
        try:
            server = WebServer(app, host=DEFAULT_HOST, port=config.port_number())
            server.serve_forever()
        except ListenError as e:
            logger.critical(
                f"Error starting server: listen {config.bind_address}: {e}"
            )
            sys.exit(1)
        except KeyboardInterrupt:
            # uvicorn re-raises the interrupt once shutdown has finished
            logger.info("Interrupted")

        logger.info(f"{config.server_name} stopped")
        return 0
    finally:
        shutdown_logging(logger, *SHARED_LOGGERS)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command line entry point."""
    parser = argparse.ArgumentParser(
        description="Serve a directory over HTTP with request logging"
    )
    parser.add_argument(
        "--config",
        "-c",
        default=CONFIG_FILENAME,
        help=f"Path to the configuration file (default: {CONFIG_FILENAME})",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only write log records to the log file",
    )

    args = parser.parse_args(argv)
    return run(args.config, log_to_console=not args.quiet)


if __name__ == "__main__":
    sys.exit(main())
