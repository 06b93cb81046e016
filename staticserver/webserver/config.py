"""
Configuration helpers for the static file server.

The server reads its settings once at startup from an INI file::

    [server]
    name = My Server
    port = 8080
    log_folder = ./logs
    log_level = info

    [paths]
    html_dir = ./public

Absent keys or sections are read as empty strings. Only a file that cannot
be read or parsed is an error.
"""

import configparser
import logging
from dataclasses import dataclass

from staticserver.core.errors import ConfigError, ListenError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "configuration.ini"

SERVER_SECTION = "server"
PATHS_SECTION = "paths"
LEADING_SECTION = "__leading__"


@dataclass(frozen=True)
class ServerConfiguration:
    """
    Settings loaded from the configuration file.

    Attributes:
        server_name: Display name used in the startup log line.
        port: Port as written in the file, e.g. "8080".
        log_folder: Directory that holds server.log.
        log_level: Read but not applied; log filtering is fixed at INFO.
        html_dir: Root directory of the served files.
    """

    server_name: str = ""
    port: str = ""
    log_folder: str = ""
    log_level: str = ""
    html_dir: str = ""

    @property
    def bind_address(self) -> str:
        """Listen address in ":port" form (all interfaces)."""
        return f":{self.port}"

    def port_number(self) -> int:
        """
        Converts the textual port to an integer.

        Returns:
            int: The TCP port.

        Raises:
            ListenError: If the port is not a decimal number in 0..65535.
        """
        text = self.port.strip()
        if not (text.isascii() and text.isdigit()) or int(text) > 65535:
            raise ListenError(f"invalid port {self.port!r}")
        return int(text)


def _new_parser() -> configparser.ConfigParser:
    # Inline comments are stripped and repeated keys or sections are merged,
    # the last value winning
    parser = configparser.ConfigParser(
        interpolation=None,
        inline_comment_prefixes=(";", "#"),
        strict=False,
    )
    # Keys are case-sensitive
    parser.optionxform = str  # type: ignore[assignment, method-assign]
    return parser


def load_config(path: str = CONFIG_FILENAME) -> ServerConfiguration:
    """
    Reads the configuration file into a ServerConfiguration.

    Args:
        path: Path to the INI file.

    Returns:
        ServerConfiguration: The loaded settings.

    Raises:
        ConfigError: If the file cannot be opened or is malformed.
    """
    parser = _new_parser()
    try:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
        # Keys above the first header land in a section nothing looks up
        parser.read_string(f"[{LEADING_SECTION}]\n{text}", source=path)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"failed to read config file: {e}") from e
    except configparser.Error as e:
        raise ConfigError(f"failed to parse config file: {e}") from e

    def get(section: str, key: str) -> str:
        return parser.get(section, key, fallback="")

    config = ServerConfiguration(
        server_name=get(SERVER_SECTION, "name"),
        port=get(SERVER_SECTION, "port"),
        log_folder=get(SERVER_SECTION, "log_folder"),
        log_level=get(SERVER_SECTION, "log_level"),
        html_dir=get(PATHS_SECTION, "html_dir"),
    )
    logger.debug(f"Loaded configuration from {path}: {config}")
    return config
