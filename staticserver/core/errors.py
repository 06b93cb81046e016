"""
Startup Error Types.

Each error aborts server startup. Per-request problems never use these; they
are answered with an HTTP status instead.
"""


class ServerError(Exception):
    """Base class for errors that stop the server from starting."""


class ConfigError(ServerError):
    """The configuration file is missing, unreadable or malformed."""


class LogError(ServerError):
    """The log file could not be opened for appending."""


class ListenError(ServerError):
    """The listening socket could not be bound or served."""
