"""
Static page server for target pages.

Serves a directory of demo HTML pages with FastAPI's StaticFiles behind a
``/health`` endpoint, running uvicorn in a background thread so tests and the
browser share one process.
"""

from __future__ import annotations

import logging
import socket
import threading
import time
from pathlib import Path
from types import TracebackType
from typing import Dict, Optional, Type, Union

import requests
import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from requests.exceptions import ConnectionError as RequestsConnectionError
from requests.exceptions import Timeout as RequestsTimeout

from harness.config import DEFAULT_HOST, DEFAULT_PORT
from harness.errors import ConfigError, HarnessError

logger = logging.getLogger(__name__)

STARTUP_TIMEOUT = 10.0
HEALTH_POLL_INTERVAL = 0.1


def create_app(html_dir: Union[str, Path]) -> FastAPI:
    """FastAPI app serving ``html_dir`` at ``/`` with a ``/health`` endpoint."""
    root = Path(html_dir).resolve()
    if not root.is_dir():
        raise ConfigError(f"Page directory {root} does not exist")

    app = FastAPI(title="page-harness static server", docs_url=None, redoc_url=None)

    @app.get("/health")
    async def health_check() -> Dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "html_dir": str(root)}

    # Mounted last so /health wins over a file of the same name
    app.mount("/", StaticFiles(directory=str(root), html=True), name="pages")
    return app


def _free_port(host: str) -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        return int(sock.getsockname()[1])


class StaticServer:
    """Background uvicorn server for a page directory; port 0 picks a free port."""

    def __init__(
        self,
        html_dir: Union[str, Path],
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
    ) -> None:
        self.html_dir = Path(html_dir)
        self.host = host
        self.port = port or _free_port(host)
        self._server: Optional[uvicorn.Server] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def url(self, path: str = "") -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def start(self, timeout: float = STARTUP_TIMEOUT) -> StaticServer:
        """Start serving and block until ``/health`` answers."""
        if self.running:
            return self

        config = uvicorn.Config(
            create_app(self.html_dir),
            host=self.host,
            port=self.port,
            log_level="warning",
        )
        self._server = uvicorn.Server(config)
        self._thread = threading.Thread(
            target=self._server.run, name=f"static-server-{self.port}", daemon=True
        )
        self._thread.start()

        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if not self._thread.is_alive():
                raise HarnessError(f"Static server on {self.base_url} exited during startup")
            try:
                response = requests.get(self.url("health"), timeout=1)
                if response.status_code == 200:
                    logger.info(f"Serving {self.html_dir} at {self.base_url}")
                    return self
            except (RequestsConnectionError, RequestsTimeout):
                pass
            time.sleep(HEALTH_POLL_INTERVAL)

        self.stop()
        raise HarnessError(f"Static server on {self.base_url} not healthy after {timeout}s")

    def stop(self) -> None:
        if self._server is not None:
            self._server.should_exit = True
        if self._thread is not None:
            self._thread.join(timeout=STARTUP_TIMEOUT)
            if self._thread.is_alive():
                logger.warning(f"Static server thread on {self.base_url} did not exit")
            else:
                logger.info(f"Static server on {self.base_url} stopped")
        self._server = None
        self._thread = None

    def __enter__(self) -> StaticServer:
        return self.start()

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.stop()
