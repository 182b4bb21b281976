"""
MCP protocol wiring and the connection registry.

create_server() builds one low-level MCP Server bound to its own
AutomationContext. ServerList keeps track of every live connection so that a
shutdown can dispose all of their browser sessions at once.
"""

import asyncio
import itertools
from typing import Any, Callable, Dict, List, Optional, Tuple

from mcp import types
from mcp.server.lowlevel import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.shared.exceptions import McpError

from . import __version__
from .browser.sessions import HandleFactory
from .config import EngineConfig
from .constants import SERVER_NAME
from .context import AutomationContext
from .exceptions import UnknownOperationError
from .resources import ScreenshotStore
from .tools import TOOLS
from .utils.operation_log import CLIENT_LOG_LEVELS

import logging
logger = logging.getLogger(__name__)


ServerFactory = Callable[[], Tuple[Server, AutomationContext]]


def create_server(
    config: EngineConfig,
    *,
    screenshots: Optional[ScreenshotStore] = None,
    handle_factory: Optional[HandleFactory] = None,
) -> Tuple[Server, AutomationContext]:
    """
    Create an MCP server and the AutomationContext it dispatches to.

    Call-tool faults:
        - unknown tool name  -> JSON-RPC error INVALID_PARAMS
        - unexpected failure -> JSON-RPC error INTERNAL_ERROR
    Everything a tool itself raises comes back as an isError result instead.

    The server also advertises the logging capability: records logged while
    a tool runs are sent to the client at or above the level it last set.
    """
    server = Server(SERVER_NAME, version=__version__)
    context = AutomationContext(
        server,
        config,
        screenshots=screenshots,
        handle_factory=handle_factory,
    )

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return [tool.schema.to_mcp() for tool in TOOLS]

    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        name = request.params.name
        arguments = request.params.arguments or {}
        try:
            result = await context.run(name, arguments)
        except UnknownOperationError as e:
            logger.error("Rejected call to unknown tool %r", name)
            raise McpError(types.ErrorData(code=types.INVALID_PARAMS, message=str(e))) from e
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Unexpected failure dispatching %s", name)
            raise McpError(types.ErrorData(code=types.INTERNAL_ERROR, message=str(e))) from e
        return types.ServerResult(result)

    # Registered directly: the decorator form would turn the unknown-tool
    # fault into an isError result.
    server.request_handlers[types.CallToolRequest] = call_tool

    @server.list_resources()
    async def list_resources() -> List[types.Resource]:
        return context.list_resources()

    @server.list_resource_templates()
    async def list_resource_templates() -> List[types.ResourceTemplate]:
        return []

    @server.read_resource()
    async def read_resource(uri) -> List[ReadResourceContents]:
        data = context.read_resource(str(uri))
        return [ReadResourceContents(content=data, mime_type="image/png")]

    # Registering logging/setLevel is what advertises the logging capability
    @server.set_logging_level()
    async def set_logging_level(level: types.LoggingLevel) -> None:
        context.client_log_level = CLIENT_LOG_LEVELS[level]
        logger.info("Client log level set to %s", level)

    return server, context


def initialization_options(server: Server):
    return server.create_initialization_options(
        notification_options=NotificationOptions(resources_changed=True),
    )


class Connection:
    """One protocol connection: its server, its context and the task serving it."""

    def __init__(self, connection_id: int, server: Server, context: AutomationContext):
        self.connection_id = connection_id
        self.server = server
        self.context = context
        self.task: Optional[asyncio.Task] = None
        self._closed = False

    def __repr__(self) -> str:
        return f"<Connection #{self.connection_id} sessions={self.context.sessions.session_ids()}>"

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        """Dispose the context's sessions, then stop the transport task. Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self.context.close()
        task = self.task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()


class ServerList:
    """
    Registry of live connections.

    Every member owns exactly one AutomationContext. Removing a member
    disposes its sessions before its transport is torn down.
    """

    def __init__(self, factory: ServerFactory):
        self._factory = factory
        self._connections: Dict[int, Connection] = {}
        self._closing: Dict[int, Connection] = {}
        self._ids = itertools.count(1)

    def __len__(self) -> int:
        return len(self._connections)

    def __iter__(self):
        return iter(list(self._connections.values()))

    def create(self) -> Connection:
        server, context = self._factory()
        connection = Connection(next(self._ids), server, context)
        self._connections[connection.connection_id] = connection
        logger.info("Connection #%d opened (%d active)", connection.connection_id, len(self))
        return connection

    async def serve(self, read_stream: Any, write_stream: Any) -> None:
        """Serve one connection over the given streams until the transport closes."""
        connection = self.create()
        connection.task = asyncio.ensure_future(
            connection.server.run(read_stream, write_stream, initialization_options(connection.server))
        )
        try:
            await connection.task
        except asyncio.CancelledError:
            if not connection.closed:
                raise
        finally:
            await self.remove(connection)

    async def remove(self, connection: Connection) -> None:
        if self._connections.pop(connection.connection_id, None) is None:
            return
        self._closing[connection.connection_id] = connection
        try:
            await connection.close()
        except Exception as e:
            logger.error("Error closing connection #%d: %s", connection.connection_id, e)
        finally:
            self._closing.pop(connection.connection_id, None)
        logger.info("Connection #%d closed (%d active)", connection.connection_id, len(self))

    async def close_all(self) -> None:
        """Close every connection concurrently. One failing member does not block the rest."""
        connections = list(self._connections.values())
        if not connections:
            return
        logger.info("Closing %d connection(s)", len(connections))
        results = await asyncio.gather(
            *(self.remove(connection) for connection in connections),
            return_exceptions=True,
        )
        for connection, result in zip(connections, results):
            if isinstance(result, BaseException):
                logger.error("Error closing connection #%d: %s", connection.connection_id, result)

    def held_sessions(self) -> List[str]:
        """Sessions not yet disposed, as ``"<connection>/<session>"``. Includes connections mid-close."""
        connections = [*self._connections.values(), *self._closing.values()]
        return [
            f"{connection.connection_id}/{session_id}"
            for connection in connections
            for session_id in connection.context.sessions.undisposed_ids()
        ]


__all__ = [
    "ServerFactory",
    "create_server",
    "initialization_options",
    "Connection",
    "ServerList",
]
