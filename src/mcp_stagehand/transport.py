"""
Transports.

- stdio: a single connection over stdin/stdout. stdin closing starts shutdown.
- sse: a Starlette app served by uvicorn. Each ``GET /sse`` stream is one
  connection with its own AutomationContext.
"""

import asyncio
import signal

import uvicorn
from mcp.server.sse import SseServerTransport
from mcp.server.stdio import stdio_server
from starlette.applications import Starlette
from starlette.responses import JSONResponse, Response
from starlette.routing import Mount, Route

from .server import ServerList
from .watchdog import ShutdownWatchdog

import logging
logger = logging.getLogger(__name__)


MESSAGES_PATH = "/messages/"


async def run_stdio(server_list: ServerList, watchdog: ShutdownWatchdog) -> int:
    """Serve one stdio connection, then drain. Returns the exit code."""
    watchdog.install()
    logger.info("Serving MCP over stdio")
    async with stdio_server() as (read_stream, write_stream):
        await server_list.serve(read_stream, write_stream)
    watchdog.trigger("stdin closed")
    return await watchdog.wait_terminated()


def create_sse_app(server_list: ServerList) -> Starlette:
    sse = SseServerTransport(MESSAGES_PATH)

    async def handle_sse(request):
        async with sse.connect_sse(request.scope, request.receive, request._send) as (read_stream, write_stream):
            await server_list.serve(read_stream, write_stream)
        return Response()

    async def health(request):
        return JSONResponse({"status": "ok", "connections": len(server_list)})

    return Starlette(
        routes=[
            Route("/health", endpoint=health),
            Route("/sse", endpoint=handle_sse),
            Mount(MESSAGES_PATH, app=sse.handle_post_message),
        ],
    )


class WatchdogServer(uvicorn.Server):
    """uvicorn server whose exit signals also trigger the shutdown watchdog."""

    def __init__(self, config: uvicorn.Config, watchdog: ShutdownWatchdog):
        super().__init__(config)
        self.watchdog = watchdog
        self._loop = None

    async def serve(self, sockets=None):
        self._loop = asyncio.get_running_loop()
        await super().serve(sockets=sockets)

    def handle_exit(self, sig, frame):
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.watchdog.trigger, signal.Signals(sig).name)
        super().handle_exit(sig, frame)


async def run_sse(
    server_list: ServerList,
    watchdog: ShutdownWatchdog,
    host: str,
    port: int,
    log_level: str = "info",
) -> int:
    """Serve SSE connections until a signal arrives, then drain. Returns the exit code."""
    config = uvicorn.Config(
        create_sse_app(server_list),
        host=host,
        port=port,
        log_level=log_level.lower(),
        timeout_graceful_shutdown=int(watchdog.grace_period),
    )
    server = WatchdogServer(config, watchdog)
    logger.info("Serving MCP over SSE at http://%s:%d/sse", host, port)
    await server.serve()
    watchdog.trigger("server stopped")
    return await watchdog.wait_terminated()


__all__ = [
    "MESSAGES_PATH",
    "run_stdio",
    "create_sse_app",
    "WatchdogServer",
    "run_sse",
]
