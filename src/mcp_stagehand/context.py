"""
Per-connection automation state.

Each protocol connection gets its own AutomationContext. It owns the
connection's browser sessions (through a SessionRegistry), tracks which one
is current, and is the single entry point the dispatcher uses to run an
operation.

Usage:
    context = AutomationContext(server, get_env_config())
    result = await context.run("stagehand_navigate", {"url": "https://example.com"})
    ...
    await context.close()
"""

import json
from typing import Any, List, Optional, Union

from mcp import types

from .browser import EnginePage, Session, SessionRegistry
from .browser.sessions import HandleFactory
from .config import EngineConfig
from .constants import DEFAULT_SESSION_ID, NETWORK_SETTLE_TIMEOUT_MS
from .decorators import tool_envelope
from .exceptions import NoActiveSessionError, SessionCreationError
from .resources import ScreenshotStore
from .tools import get_tool
from .tools.tool import OperationScope, Tool, ToolContext, ToolResult, text
from .utils.diagnostics import collect_diagnostics
from .utils.operation_log import current_operation_log, install_client_log_handler, operation_scope

import logging
logger = logging.getLogger(__name__)


SNAPSHOT_EXPRESSION = "() => ({ url: window.location.href, title: document.title })"


class AutomationContext:
    """
    Encapsulates the browser session state of one protocol connection.

    Attributes:
        server: The connection's MCP server (outbound notification channel)
        config: Immutable engine configuration for this connection
        sessions: Registry owning every session of this connection
        screenshots: Screenshot store reported to by the screenshot tool
        current_session_id: Session the session-scoped tools run against
        last_session_error: Most recent session creation failure, if any
        client_log_level: Lowest stdlib level forwarded to the client as a log message
    """

    def __init__(
        self,
        server: Any,
        config: EngineConfig,
        *,
        sessions: Optional[SessionRegistry] = None,
        screenshots: Optional[ScreenshotStore] = None,
        handle_factory: Optional[HandleFactory] = None,
    ):
        self.server = server
        self.config = config
        if sessions is None:
            sessions = SessionRegistry(config, handle_factory=handle_factory)
        self.sessions = sessions
        self.screenshots = screenshots if screenshots is not None else ScreenshotStore()
        self.current_session_id = DEFAULT_SESSION_ID
        self.last_session_error: Optional[BaseException] = None
        self.client_log_level = logging.INFO
        install_client_log_handler()

    # ------------------------------------------------------------------
    # Session accessors
    # ------------------------------------------------------------------

    def set_current_session(self, session_id: str) -> None:
        self.current_session_id = session_id

    async def get_active_session(self) -> Session:
        """Resolve the current session, creating or healing it. Raises on failure."""
        return await self.sessions.acquire(self.current_session_id)

    async def get_active_page(self) -> Optional[EnginePage]:
        """
        Page of the current session, creating the session if necessary.

        Returns None when the session cannot be created; the cause is kept
        in last_session_error.
        """
        try:
            session = await self.get_active_session()
        except SessionCreationError as e:
            self.last_session_error = e.cause
            return None
        self.last_session_error = None
        return session.page

    async def get_active_browser(self) -> Any:
        try:
            session = await self.get_active_session()
        except SessionCreationError as e:
            self.last_session_error = e.cause
            return None
        self.last_session_error = None
        return session.browser

    def get_active_session_read_only(self) -> Optional[Session]:
        return self.sessions.get_active_read_only(self.current_session_id)

    def get_active_page_read_only(self) -> Optional[EnginePage]:
        """Page of the current session if it already exists. Never creates one."""
        session = self.get_active_session_read_only()
        return session.page if session is not None else None

    def get_active_browser_read_only(self) -> Any:
        """Browser of the current session if it already exists. Never creates one."""
        session = self.get_active_session_read_only()
        return session.browser if session is not None else None

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def run(self, tool: Union[Tool, str], arguments: Optional[dict] = None) -> types.CallToolResult:
        """
        Run one operation and return its result envelope.

        An unknown operation name raises UnknownOperationError before any
        session is touched. Every other failure is returned as an isError
        result. Records logged during the call are forwarded to the client
        and kept as the call's operation log.
        """
        if isinstance(tool, str):
            tool = get_tool(tool)
        arguments = arguments or {}

        with operation_scope(self):
            logger.info("Executing tool: %s with args: %s", tool.name, json.dumps(arguments, default=str))
            result = await self._execute(tool, arguments)
            if result.isError:
                message = result.content[0].text if result.content else ""
                logger.error("Tool %s failed: %s", tool.name, message)
            else:
                logger.info("Tool %s completed successfully", tool.name)
        return result

    @tool_envelope
    async def _execute(self, tool: Tool, arguments: dict) -> List[Any]:
        tool_context = await self._tool_context(tool)
        tool_result = await tool.handle(tool_context, arguments)
        return await self._resolve(tool_context, tool_result)

    async def _tool_context(self, tool: Tool) -> ToolContext:
        session_id = self.current_session_id
        if tool.scope is OperationScope.SESSION_SET:
            return ToolContext(context=self, session_id=session_id)

        page = await self.get_active_page()
        if page is None:
            cause = self.last_session_error
            raise NoActiveSessionError(
                session_id,
                reason=str(cause) if cause else "",
                details=collect_diagnostics(self, cause, operation_log=current_operation_log()),
            )
        session = self.sessions.get_active_read_only(session_id)
        return ToolContext(
            context=self,
            session_id=session_id,
            page=page,
            handle=session.handle if session is not None else None,
        )

    async def _resolve(self, tool_context: ToolContext, tool_result: ToolResult) -> List[Any]:
        content: List[Any] = []
        if tool_result.action is not None:
            content = list(await tool_result.action() or [])

        page = tool_context.page
        if page is not None and tool_result.wait_for_network:
            await self._wait_for_network(page)
        if page is not None and tool_result.capture_snapshot:
            snapshot = await self._capture_snapshot(page)
            if snapshot is not None:
                content.append(snapshot)

        return content

    async def _wait_for_network(self, page: EnginePage) -> None:
        try:
            await page.wait_for_settle(NETWORK_SETTLE_TIMEOUT_MS)
        except Exception as e:
            # Long-polling pages never go idle; the action itself already succeeded
            logger.debug("Network did not settle within %sms: %s", NETWORK_SETTLE_TIMEOUT_MS, e)

    async def _capture_snapshot(self, page: EnginePage) -> Optional[types.TextContent]:
        try:
            info = await page.evaluate(SNAPSHOT_EXPRESSION) or {}
        except Exception as e:
            logger.debug("Page snapshot failed: %s", e)
            return None
        title = info.get("title") or ""
        url = info.get("url") or ""
        return text(f"Current page: {title} ({url})" if title else f"Current page: {url}")

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def list_resources(self) -> List[types.Resource]:
        return self.screenshots.list_resources()

    def read_resource(self, uri: str) -> bytes:
        return self.screenshots.read(uri)

    async def notify_resources_changed(self) -> None:
        """Tell this connection's client that the resource list changed."""
        try:
            session = self.server.request_context.session
        except (AttributeError, LookupError):
            # Not inside a request (e.g. called from a test or a background task)
            return
        try:
            await session.send_resource_list_changed()
        except Exception as e:
            logger.debug("Could not send resources/list_changed: %s", e)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Dispose every session this context owns."""
        session_ids = self.sessions.session_ids()
        await self.sessions.release_all()
        self.current_session_id = DEFAULT_SESSION_ID
        if session_ids:
            logger.info("Context closed, released sessions: %s", ", ".join(session_ids))


__all__ = ["AutomationContext", "SNAPSHOT_EXPRESSION"]
