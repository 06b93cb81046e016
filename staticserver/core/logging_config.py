"""
Logging Configuration Module.

This module sets up the server's log sink: an append-mode file handler on
<log_folder>/server.log plus optional console output. The configured logger
is returned so it can be handed to the components that log.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from staticserver.core.errors import LogError

# Configuration
LOGGER_NAME = "staticserver"
LOG_FILENAME = "server.log"
MAX_BYTES = 5 * 1024 * 1024  # 5 MB
BACKUP_COUNT = 5
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class SafeRotatingFileHandler(RotatingFileHandler):
    """
    A RotatingFileHandler that handles Windows file locking errors gracefully.

    On Windows, log rotation can fail with PermissionError if the file is still
    in use by another process or handler. This handler catches those errors
    and continues logging without crashing.
    """

    def doRollover(self) -> None:
        """
        Perform log file rotation, catching Windows file locking errors.
        """
        try:
            super().doRollover()
        except PermissionError:
            if sys.platform != "win32":
                raise
            # On Windows, skip rotation and keep writing to the current file


def get_log_path(log_folder: str) -> str:
    """
    Returns the log file path inside the given folder.

    Args:
        log_folder: Directory holding the log file.

    Returns:
        str: Path to server.log.
    """
    return os.path.join(log_folder, LOG_FILENAME)


def setup_logging(log_folder: str, log_to_console: bool = True) -> logging.Logger:
    """
    Directs the server logger to <log_folder>/server.log.

    The file is created if absent and appended to otherwise. The folder
    itself must already exist. Calling this again replaces the previous
    handlers instead of stacking new ones.

    Args:
        log_folder: Existing directory for server.log.
        log_to_console: If True, also writes records to stdout.

    Returns:
        logging.Logger: The configured server logger.

    Raises:
        LogError: If the log file cannot be opened.
    """
    log_path = get_log_path(log_folder)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    try:
        file_handler = SafeRotatingFileHandler(
            log_path,
            mode="a",
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
            delay=False,
        )
    except OSError as e:
        raise LogError(f"could not open log file: {e}") from e
    file_handler.setFormatter(formatter)

    logger = logging.getLogger(LOGGER_NAME)
    shutdown_logging(logger)
    logger.setLevel(logging.INFO)
    logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def share_handlers(logger: logging.Logger, *names: str) -> None:
    """
    Routes other named loggers (e.g. "uvicorn.error") to the same handlers.

    Args:
        logger: The configured server logger.
        *names: Names of the loggers to redirect.
    """
    for name in names:
        other = logging.getLogger(name)
        other.handlers = list(logger.handlers)
        other.setLevel(logger.level)
        other.propagate = False


def shutdown_logging(logger: logging.Logger, *shared: str) -> None:
    """
    Closes and detaches all handlers of the logger to release file locks.

    Args:
        logger: The server logger.
        *shared: Names previously passed to share_handlers.
    """
    for name in shared:
        logging.getLogger(name).handlers.clear()
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
