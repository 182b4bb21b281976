"""
Log records produced while an operation runs.

While AutomationContext.run executes a call, every record logged under the
``mcp_stagehand`` logger is
  - collected into that call's operation log, which is appended to the
    diagnostics of a failed session initialization, and
  - forwarded to the connection's client as an MCP ``notifications/message``
    when it is at or above the level the client asked for.

Outside of a call the handler does nothing; stderr and the log file are
still fed by the root logger.
"""

import asyncio
import contextlib
import contextvars
import logging
from typing import TYPE_CHECKING, Iterator, List, Optional, Set

if TYPE_CHECKING:
    from ..context import AutomationContext

logger = logging.getLogger(__name__)


PACKAGE_LOGGER = "mcp_stagehand"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# MCP logging levels (RFC 5424 names) and the stdlib level each one maps to
CLIENT_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": logging.INFO + 5,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "alert": logging.CRITICAL + 5,
    "emergency": logging.CRITICAL + 10,
}

_active_context: contextvars.ContextVar[Optional["AutomationContext"]] = contextvars.ContextVar(
    "mcp_stagehand_active_context", default=None
)
_operation_log: contextvars.ContextVar[Optional[List[str]]] = contextvars.ContextVar(
    "mcp_stagehand_operation_log", default=None
)

# Strong references to in-flight notifications
_pending: Set[asyncio.Task] = set()


def client_level_name(levelno: int) -> str:
    """The highest MCP level at or below a stdlib level number."""
    name = "debug"
    for candidate, threshold in CLIENT_LOG_LEVELS.items():
        if levelno >= threshold:
            name = candidate
    return name


@contextlib.contextmanager
def operation_scope(context: "AutomationContext") -> Iterator[List[str]]:
    """Collect and forward records for one call made through ``context``."""
    lines: List[str] = []
    context_token = _active_context.set(context)
    log_token = _operation_log.set(lines)
    try:
        yield lines
    finally:
        _operation_log.reset(log_token)
        _active_context.reset(context_token)


def current_operation_log() -> List[str]:
    """Lines logged so far by the running call. Empty outside of a call."""
    return list(_operation_log.get() or [])


def _delivered(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Could not forward log message to client: %s", exc)


class ClientLogHandler(logging.Handler):
    """Feeds the running call's operation log and its client's log stream."""

    def emit(self, record: logging.LogRecord) -> None:
        # Delivery failures are reported on this module's logger
        if record.name == __name__:
            return
        lines = _operation_log.get()
        context = _active_context.get()
        if lines is None and context is None:
            return
        try:
            message = self.format(record)
        except Exception:
            self.handleError(record)
            return
        if lines is not None:
            lines.append(message)
        if context is not None and record.levelno >= context.client_log_level:
            self._forward(context, record, message)

    def _forward(self, context: "AutomationContext", record: logging.LogRecord, message: str) -> None:
        try:
            session = context.server.request_context.session
            loop = asyncio.get_running_loop()
        except (AttributeError, LookupError, RuntimeError):
            # No request in flight, or logged from a worker thread
            return
        task = loop.create_task(
            session.send_log_message(
                level=client_level_name(record.levelno),
                data=message,
                logger=record.name,
            )
        )
        _pending.add(task)
        task.add_done_callback(_delivered)


def install_client_log_handler() -> ClientLogHandler:
    """Attach one ClientLogHandler to the package logger. Idempotent."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in package_logger.handlers:
        if isinstance(handler, ClientLogHandler):
            return handler
    handler = ClientLogHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)
    return handler


__all__ = [
    "CLIENT_LOG_LEVELS",
    "ClientLogHandler",
    "client_level_name",
    "current_operation_log",
    "install_client_log_handler",
    "operation_scope",
]
