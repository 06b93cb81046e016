import logging

from fastapi import FastAPI

from staticserver.webserver.config import ServerConfiguration
from staticserver.webserver.middleware import LoggingMiddleware
from staticserver.webserver.static_files import StaticDirectory


def create_app(config: ServerConfiguration, logger: logging.Logger) -> FastAPI:
    """
    Factory function to create the FastAPI app with the given configuration.

    The html directory is mounted as the catch-all route and every request
    passes through the logging middleware.
    """
    app = FastAPI(
        title=config.server_name or "Static File Server",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.mount("/", StaticDirectory(directory=config.html_dir), name="static")
    app.add_middleware(LoggingMiddleware, logger=logger)

    return app
