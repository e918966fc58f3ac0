"""Listening socket and uvicorn server lifecycle."""
from __future__ import annotations

import logging
import socket
import threading
import time
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .config import Settings
from .errors import BindError

logger = logging.getLogger(__name__)


def bind_socket(host: str, port: int) -> socket.socket:
    """Create a TCP socket bound to ``host:port``; raise :class:`BindError` if that fails."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise BindError(host, port, exc.strerror or str(exc)) from exc
    sock.set_inheritable(True)
    return sock


class ExporterServer:
    """Owns the listening socket and the uvicorn server serving ``app``."""

    def __init__(self, app: FastAPI, settings: Settings) -> None:
        self.settings = settings
        self._config = uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level,
        )
        self._server = uvicorn.Server(self._config)
        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        if self._socket is None:
            return self.settings.port
        return self._socket.getsockname()[1]

    @property
    def started(self) -> bool:
        return bool(self._server.started)

    def bind(self) -> None:
        if self._socket is None:
            self._socket = bind_socket(self.settings.host, self.settings.port)
            logger.info("Bound %s:%s", self.settings.host, self.port)

    def run(self) -> None:
        """Serve in the foreground until uvicorn is told to exit."""
        self.bind()
        logger.info("Serving metrics on http://%s:%s/metrics", self.settings.host, self.port)
        self._server.run(sockets=[self._socket])

    def start(self, timeout: float = 10.0) -> None:
        """Serve on a background thread and wait until it accepts connections."""
        self.bind()
        self._thread = threading.Thread(
            target=self._server.run,
            kwargs={"sockets": [self._socket]},
            name="exporter-server",
            daemon=True,
        )
        self._thread.start()
        deadline = time.monotonic() + timeout
        while not self.started:
            if not self._thread.is_alive():
                raise RuntimeError("exporter server exited during startup")
            if time.monotonic() > deadline:
                self.stop()
                raise TimeoutError(f"exporter server did not start within {timeout}s")
            time.sleep(0.01)

    def stop(self, timeout: float = 10.0) -> None:
        self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        if self._socket is not None:
            self._socket.close()
            self._socket = None
