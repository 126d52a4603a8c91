from __future__ import annotations

import asyncio
from typing import Optional

import uvicorn
from fastapi import FastAPI

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.API)


class APIServerWrapper:
    """
    Runs uvicorn inside a tracked asyncio task without uvicorn's own signal
    handlers, so SIGINT/SIGTERM stay with the ShutdownCoordinator.

    start() serves until stop() is called; stop() is safe to call from a
    shutdown handler whether or not the server ever came up.
    """

    def __init__(self, app: FastAPI, host: str = "0.0.0.0", port: int = 8000):
        self.app = app
        self.host = host
        self.port = port
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    def _create_server(self) -> uvicorn.Server:
        config = uvicorn.Config(
            app=self.app,
            host=self.host,
            port=self.port,
            loop="asyncio",
            log_level="warning",
            access_log=False,
            server_header=False,
        )
        server = uvicorn.Server(config)
        server.install_signal_handlers = lambda: None  # type: ignore
        return server

    async def start(self, *, wait_started_timeout: float = 5.0) -> None:
        """
        Launch uvicorn and block until stop() is called.

        Schedule it with create_tracked_task(..., category=TaskCategory.API).
        """
        if self.is_running:
            raise RuntimeError("API server already started")

        self._server = self._create_server()
        self._stop_event.clear()

        log.info(f"Launching API server on http://{self.host}:{self.port}")
        self._serve_task = asyncio.create_task(self._server.serve(), name="UvicornServe")

        try:
            await self._wait_started(wait_started_timeout)
            await self._stop_event.wait()
        except asyncio.CancelledError:
            log.debug("API server task cancelled, stopping server")
            await self.stop()
            raise

    async def _wait_started(self, timeout: float) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if self._server.started:
                log.info("API server started")
                return
            if self._serve_task.done():
                # serve() ended without reporting started
                self._stop_event.set()
                self._server = None
                raise RuntimeError(f"API server failed to start on port {self.port}")
            await asyncio.sleep(0.05)
        log.warn(f"API server not started after {timeout}s, still waiting in background")

    async def stop(self, *, shutdown_timeout: float = 2.0) -> None:
        """Stop uvicorn, close its sockets and release the port."""
        self._stop_event.set()

        if self._server is None:
            log.debug("API server stop() called but server was not running")
            return

        log.info("Stopping API server...")
        server, self._server = self._server, None
        server.should_exit = True
        server.force_exit = True

        task, self._serve_task = self._serve_task, None
        if task is not None and not task.done():
            try:
                await asyncio.wait_for(task, timeout=shutdown_timeout)
            except asyncio.TimeoutError:
                log.warn(f"API server did not stop within {shutdown_timeout}s, cancelled")
            except asyncio.CancelledError:
                log.debug("Uvicorn serve task cancelled")

        for sock_server in getattr(server, "servers", None) or []:
            sock_server.close()

        log.info("API server stopped")

    @property
    def is_running(self) -> bool:
        return self._serve_task is not None and not self._serve_task.done()

    @property
    def server(self) -> Optional[uvicorn.Server]:
        return self._server
