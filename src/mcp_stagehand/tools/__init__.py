# mcp_stagehand/tools/__init__.py
"""
Operation catalog.

Each module defines one tool: a JSON input schema, a scope telling the
dispatcher whether a page must be resolved first, and an async handler that
returns a ToolResult for AutomationContext.run to execute.
"""

from typing import Dict, List

from ..exceptions import UnknownOperationError
from .tool import OperationScope, Tool

from .session import SESSION_TOOLS, session_create_tool, session_close_tool
from .navigate import navigate_tool
from .act import act_tool
from .extract import extract_tool
from .observe import observe_tool
from .screenshot import screenshot_tool
from .agent import agent_tool


CORE_TOOLS: List[Tool] = [
    navigate_tool,
    act_tool,
    extract_tool,
    observe_tool,
    screenshot_tool,
]

TOOLS: List[Tool] = [
    *SESSION_TOOLS,
    *CORE_TOOLS,
    agent_tool,
]

TOOLS_BY_NAME: Dict[str, Tool] = {tool.name: tool for tool in TOOLS}


def get_tool(name: str) -> Tool:
    """Look up a tool by name. Raises UnknownOperationError."""
    try:
        return TOOLS_BY_NAME[name]
    except (KeyError, TypeError):
        raise UnknownOperationError(name) from None


__all__ = [
    'OperationScope',
    'Tool',
    # Catalog
    'TOOLS',
    'CORE_TOOLS',
    'SESSION_TOOLS',
    'TOOLS_BY_NAME',
    'get_tool',
    # Individual tools
    'session_create_tool',
    'session_close_tool',
    'navigate_tool',
    'act_tool',
    'extract_tool',
    'observe_tool',
    'screenshot_tool',
    'agent_tool',
]
