"""
Web Service Manager Module.
Binds the listening socket and runs the Uvicorn server, either in the
foreground or in a background thread.
"""

import errno
import logging
import socket
import threading
import time
from typing import Optional

import uvicorn
from starlette.types import ASGIApp

from staticserver.core.errors import ListenError

logger = logging.getLogger(__name__)

# Empty host listens on every interface, IPv6 included where supported
DEFAULT_HOST = ""
STARTUP_TIMEOUT = 10.0


class WebServer:
    """
    Owns the listening socket and the Uvicorn server serving an ASGI app.
    """

    def __init__(self, app: ASGIApp, host: str = DEFAULT_HOST, port: int = 0) -> None:
        """Initialize the web server.

        Args:
            app: The ASGI application to serve.
            host: Interface to bind; the default listens on all of them.
            port: TCP port, 0 picks a free one.
        """
        self.app = app
        self.host = host
        self.port = port
        self._socket: Optional[socket.socket] = None
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        """Check if the server has started and not yet been asked to exit."""
        return (
            self._server is not None
            and self._server.started
            and not self._server.should_exit
        )

    @property
    def url(self) -> str:
        """Base URL of the server, using localhost for wildcard binds."""
        host = "127.0.0.1" if self.host in ("", "0.0.0.0") else self.host
        return f"http://{host}:{self.port}"

    def bind(self) -> socket.socket:
        """
        Creates and binds the listening socket.

        Returns:
            socket.socket: The bound socket; self.port holds the actual port.

        Raises:
            ListenError: If the address cannot be bound.
        """
        if self.host == "" and socket.has_dualstack_ipv6():
            sock = socket.socket(socket.AF_INET6, socket.SOCK_STREAM)
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 0)
            address = "::"
        else:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
            address = self.host or "0.0.0.0"
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((address, self.port))
        except OverflowError as e:
            sock.close()
            raise ListenError(f"invalid port {self.port}: {e}") from e
        except OSError as e:
            sock.close()
            if e.errno in (errno.EADDRINUSE, 10048):
                raise ListenError(f"port {self.port} is already in use") from e
            raise ListenError(f"cannot listen on {self.host}:{self.port}: {e}") from e

        self.port = sock.getsockname()[1]
        self._socket = sock
        return sock

    def _create_server(self) -> uvicorn.Server:
        uv_config = uvicorn.Config(
            self.app,
            host=self.host or "0.0.0.0",
            port=self.port,
            log_level="info",
            log_config=None,
            access_log=False,
            loop="asyncio",
        )
        return uvicorn.Server(uv_config)

    def serve_forever(self) -> None:
        """
        Binds and serves in the calling thread until interrupted.

        Raises:
            ListenError: If binding fails or the server cannot start.
        """
        sock = self._socket or self.bind()
        self._server = self._create_server()
        try:
            self._server.run(sockets=[sock])
        finally:
            sock.close()
            self._socket = None
        if not self._server.started:
            raise ListenError(f"server failed to start on port {self.port}")

    def start(self) -> None:
        """
        Binds, then serves in a background thread.

        Returns once the server accepts connections.

        Raises:
            ListenError: If binding fails or startup does not finish in time.
        """
        if self.is_running:
            return

        sock = self._socket or self.bind()
        self._server = self._create_server()
        server = self._server
        self._thread = threading.Thread(
            target=server.run, kwargs={"sockets": [sock]}, daemon=True
        )
        self._thread.start()

        deadline = time.time() + STARTUP_TIMEOUT
        while not server.started:
            if not self._thread.is_alive() or time.time() > deadline:
                self.stop()
                raise ListenError(f"server failed to start on port {self.port}")
            time.sleep(0.05)
        logger.info(f"Web server started at {self.url}")

    def stop(self) -> None:
        """Request the server to stop and wait for the thread to finish."""
        if self._server:
            self._server.should_exit = True
        if self._thread:
            logger.info("Stopping web server...")
            self._thread.join()
            self._thread = None
            # serve_forever closes its own socket once uvicorn returns
            if self._socket:
                self._socket.close()
                self._socket = None
