"""
Request logging middleware.

Wraps an ASGI app and logs the method and path of every HTTP request before
it is handled, then the time it took once the inner app returns.
"""

import logging
import time

from starlette.types import ASGIApp, Receive, Scope, Send

_UNITS = (
    (1e9, "ns"),
    (1e6, "µs"),
    (1e3, "ms"),
)


def format_duration(seconds: float) -> str:
    """
    Formats an elapsed time with a unit suffix, e.g. "152.417µs" or "1.5s".

    Args:
        seconds: Elapsed wall-clock time in seconds.

    Returns:
        str: Human readable duration with at most three decimals.
    """
    if seconds <= 0:
        return "0s"
    # The unit is picked after rounding, so 999.9999ms prints as 1s
    for scale, unit in _UNITS:
        value = round(seconds * scale, 3)
        if value < 1000:
            break
    else:
        value, unit = round(seconds, 3), "s"
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return f"{text}{unit}"


class LoggingMiddleware:
    """
    ASGI middleware that times each HTTP request.

    Exceptions raised by the inner app are not caught here.
    """

    def __init__(self, app: ASGIApp, logger: logging.Logger) -> None:
        """Initialize the middleware.

        Args:
            app: The inner ASGI application.
            logger: Log sink for the request lines.
        """
        self.app = app
        self.logger = logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start = time.perf_counter()
        self.logger.info(f"Started {scope['method']} {scope['path']}")

        await self.app(scope, receive, send)

        self.logger.info(f"Completed in {format_duration(time.perf_counter() - start)}")
