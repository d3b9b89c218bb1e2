"""
Ephemeral content server: serves one static HTML page over loopback.

Binds to an OS-assigned port. The payload is read on every request (never
cached) so edits to the page on disk show up on the next frame load.
"""

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional

from aiohttp import web

from yaml_preview.errors import ServeError

logger = logging.getLogger(__name__)

LOOPBACK_HOST = "127.0.0.1"
INDEX_PATH = "/index.html"

PayloadReader = Callable[[], Awaitable[str]]


async def read_text_file(path: Path) -> str:
    return await asyncio.to_thread(path.read_text, "utf-8")


def file_reader(path: Path) -> PayloadReader:
    async def read() -> str:
        return await read_text_file(path)
    return read


class ContentServer:
    def __init__(self, payload_reader: PayloadReader, host: str = LOOPBACK_HOST):
        self._payload_reader = payload_reader
        self._host = host
        self._port: Optional[int] = None
        self._runner: Optional[web.AppRunner] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._app = web.Application(middlewares=[self._request_logging_middleware])
        self._app.router.add_get("/", self._handle_index)
        self._app.router.add_get(INDEX_PATH, self._handle_index)

    @classmethod
    async def start(cls, payload_reader: PayloadReader, host: str = LOOPBACK_HOST) -> "ContentServer":
        server = cls(payload_reader, host=host)
        await server._bind()
        return server

    @property
    def running(self) -> bool:
        return self._runner is not None

    @property
    def loop(self) -> Optional[asyncio.AbstractEventLoop]:
        """The event loop the server was bound on."""
        return self._loop

    @property
    def port(self) -> int:
        if self._port is None:
            raise RuntimeError("Content server is not running")
        return self._port

    @property
    def origin(self) -> str:
        return f"http://{self._host}:{self.port}"

    @property
    def address(self) -> str:
        return f"{self.origin}{INDEX_PATH}"

    async def _bind(self) -> None:
        runner = web.AppRunner(self._app, access_log=None)
        await runner.setup()
        site = web.TCPSite(runner, self._host, 0)
        try:
            await site.start()
        except Exception:
            await runner.cleanup()
            raise

        port = self._resolve_port(site, runner)
        if port is None:
            await runner.cleanup()
            raise RuntimeError("Content server started but no listening socket was reported")
        self._runner = runner
        self._port = port
        self._loop = asyncio.get_running_loop()
        logger.info("Content server listening on %s", self.address)

    @staticmethod
    def _resolve_port(site: web.TCPSite, runner: web.AppRunner) -> Optional[int]:
        sockets = getattr(getattr(site, "_server", None), "sockets", None) or ()
        if sockets:
            return sockets[0].getsockname()[1]
        addresses = getattr(runner, "addresses", None) or ()
        if addresses:
            first = addresses[0]
            if isinstance(first, tuple) and len(first) >= 2:
                return int(first[1])
        return None

    async def stop(self) -> None:
        """Release the port. Safe to call more than once."""
        runner, self._runner = self._runner, None
        if runner is None:
            return
        await runner.cleanup()
        logger.info("Content server on port %s stopped", self._port)

    @web.middleware
    async def _request_logging_middleware(self, request: web.Request, handler) -> web.StreamResponse:
        try:
            response = await handler(request)
        except web.HTTPException as e:
            logger.debug("HTTP %s %s status=%s", request.method, request.path, e.status)
            raise
        logger.debug("HTTP %s %s status=%s", request.method, request.path, response.status)
        return response

    async def _handle_index(self, request: web.Request) -> web.Response:
        try:
            html = await self._read_payload()
        except ServeError as e:
            logger.warning("%s", e)
            return web.Response(status=500, text="Failed to load preview page")
        return web.Response(text=html, content_type="text/html", charset="utf-8")

    async def _read_payload(self) -> str:
        try:
            return await self._payload_reader()
        except Exception as e:
            raise ServeError(f"Preview page could not be read: {e}") from e
