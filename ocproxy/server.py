"""Server lifecycle: an explicit handle around the uvicorn transport."""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .config_loader import ProxySettings
from .core.exceptions import ConfigurationError

logger = logging.getLogger("ocproxy")

STARTUP_POLL_INTERVAL = 0.05


def check_transport(host: str, port: int) -> None:
    """Verify that the listener can be bound before starting the server.

    Raises:
        ConfigurationError: If the address cannot be resolved or bound.
    """
    try:
        infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except socket.gaierror as exc:
        raise ConfigurationError(f"Cannot resolve listen host {host!r}: {exc}") from exc

    family, socktype, proto, _canonname, sockaddr = infos[0]
    sock = socket.socket(family, socktype, proto)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind(sockaddr)
    except OSError as exc:
        raise ConfigurationError(f"Cannot listen on {host}:{port}: {exc}") from exc
    finally:
        sock.close()


class ProxyServer:
    """Owns the HTTP listener serving the proxy app.

    Usage:
        server = ProxyServer(app, settings)
        await server.start()
        ...
        await server.stop()

    or ``server.run()`` to block until SIGINT/SIGTERM.
    """

    def __init__(self, app: FastAPI, settings: ProxySettings) -> None:
        self.app = app
        self.settings = settings
        self._server: Optional[uvicorn.Server] = None
        self._task: Optional[asyncio.Task] = None

    def _build_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            self.app,
            host=self.settings.host,
            port=self.settings.port,
            log_level=logging.getLevelName(self.settings.log_level.upper()),
            lifespan="on",
        )
        return uvicorn.Server(config)

    @property
    def started(self) -> bool:
        return bool(self._server is not None and self._server.started)

    def check_transport(self) -> None:
        check_transport(self.settings.host, self.settings.port)

    async def start(self) -> None:
        """Start listening in the background; returns once the socket is bound.

        Raises:
            ConfigurationError: If the listener cannot be started.
        """
        if self._task is not None:
            raise RuntimeError("Server already started")
        self.check_transport()
        self._server = self._build_server()
        self._task = asyncio.create_task(self._server.serve())
        while not self._server.started:
            if self._task.done():
                exc = self._task.exception()
                self._task = None
                raise ConfigurationError(
                    f"Server failed to listen on {self.settings.host}:{self.settings.port}"
                ) from exc
            await asyncio.sleep(STARTUP_POLL_INTERVAL)
        logger.info(f"Listening on {self.settings.base_url}")

    async def stop(self) -> None:
        """Stop the listener and wait for in-flight requests to drain."""
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        try:
            await self._task
        finally:
            self._task = None
            self._server = None
        logger.info("Server stopped")

    def run(self) -> None:
        """Serve in the foreground until interrupted by SIGINT/SIGTERM."""
        self.check_transport()
        self._server = self._build_server()
        logger.info(f"Listening on {self.settings.base_url}")
        try:
            self._server.run()
        finally:
            self._server = None
