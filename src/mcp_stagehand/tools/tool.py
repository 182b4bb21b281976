"""Operation definitions shared by every tool module."""

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, List, Optional, Union

from mcp import types

if TYPE_CHECKING:
    from ..browser import EngineHandle, EnginePage
    from ..context import AutomationContext


ContentBlock = Union[types.TextContent, types.ImageContent]
ToolActionResult = Optional[List[ContentBlock]]


class OperationScope(enum.Enum):
    """How the dispatcher prepares a call before handing it to the tool."""

    SESSION = "session"
    """Runs against the current session. The page is resolved (and created) first."""

    SESSION_SET = "session_set"
    """Operates on the set of sessions (create/close). Dispatched without resolving a page."""


@dataclass(frozen=True)
class ToolSchema:
    name: str
    description: str
    input_schema: dict

    def to_mcp(self) -> types.Tool:
        return types.Tool(name=self.name, description=self.description, inputSchema=self.input_schema)


@dataclass(frozen=True)
class ToolContext:
    """
    What a tool handler gets to work with.

    Attributes:
        context: The connection's AutomationContext
        session_id: Current session identifier at dispatch time
        page: Active page, None for SESSION_SET tools
        handle: Active engine handle, None for SESSION_SET tools
    """

    context: "AutomationContext"
    session_id: str
    page: Optional["EnginePage"] = None
    handle: Optional["EngineHandle"] = None


@dataclass
class ToolResult:
    """
    What a handler hands back to the dispatcher.

    Attributes:
        action: Coroutine function performing the engine call
        capture_snapshot: Append the page title/URL after the action
        wait_for_network: Wait for the page to settle after the action
    """

    action: Optional[Callable[[], Awaitable[ToolActionResult]]] = None
    capture_snapshot: bool = False
    wait_for_network: bool = False


ToolHandler = Callable[[ToolContext, dict], Awaitable[ToolResult]]


@dataclass(frozen=True)
class Tool:
    schema: ToolSchema
    handle: ToolHandler
    scope: OperationScope = OperationScope.SESSION

    @property
    def name(self) -> str:
        return self.schema.name


def define_tool(
    name: str,
    description: str,
    handle: ToolHandler,
    properties: Optional[dict] = None,
    required: Optional[List[str]] = None,
    scope: OperationScope = OperationScope.SESSION,
) -> Tool:
    """Build a Tool with a JSON object input schema."""
    input_schema = {"type": "object", "properties": properties or {}}
    if required:
        input_schema["required"] = list(required)
    return Tool(
        schema=ToolSchema(name=name, description=description, input_schema=input_schema),
        handle=handle,
        scope=scope,
    )


def text(value: str) -> types.TextContent:
    return types.TextContent(type="text", text=value)


def require_str(params: dict, key: str) -> str:
    """Read a required, non-empty string argument."""
    value = params.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"'{key}' is required and must be a non-empty string")
    return value


def optional_str(params: dict, key: str) -> Optional[str]:
    value = params.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value.strip() or None


__all__ = [
    "ContentBlock",
    "ToolActionResult",
    "OperationScope",
    "ToolSchema",
    "ToolContext",
    "ToolResult",
    "ToolHandler",
    "Tool",
    "define_tool",
    "text",
    "require_str",
    "optional_str",
]
