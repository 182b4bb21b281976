"""
Session management tools.

These operate on the set of sessions rather than on the current one, so the
dispatcher hands them a ToolContext without resolving a page first.
"""

from .tool import OperationScope, ToolContext, ToolResult, define_tool, optional_str, text
from ..constants import DEFAULT_SESSION_ID

import logging
logger = logging.getLogger(__name__)


async def handle_session_create(ctx: ToolContext, params: dict) -> ToolResult:
    session_id = optional_str(params, "session_id") or DEFAULT_SESSION_ID
    context = ctx.context

    async def action():
        existed = session_id in context.sessions
        session = await context.sessions.acquire(session_id)
        context.set_current_session(session_id)
        logger.info("Current browser session is now %s", session_id)

        verb = "Reused" if existed else "Created"
        content = [text(f"{verb} browser session: {session_id}")]
        live_view_url = session.handle.live_view_url
        if live_view_url:
            content.append(text(f"View the live session here: {live_view_url}"))
        return content

    return ToolResult(action=action)


async def handle_session_close(ctx: ToolContext, params: dict) -> ToolResult:
    context = ctx.context
    session_id = optional_str(params, "session_id") or context.current_session_id

    async def action():
        if context.sessions.get_active_read_only(session_id) is None:
            return [text(f"No active browser session named {session_id}")]

        await context.sessions.release(session_id)
        if session_id == context.current_session_id:
            context.set_current_session(DEFAULT_SESSION_ID)
        return [text(f"Closed browser session: {session_id}")]

    return ToolResult(action=action)


session_create_tool = define_tool(
    name="stagehand_session_create",
    description=(
        "Create a new browser session, or reuse an existing one with the same id, and make "
        "it the current session. Subsequent tools run against the current session."
    ),
    handle=handle_session_create,
    properties={
        "session_id": {
            "type": "string",
            "description": f"Identifier for the session. Defaults to '{DEFAULT_SESSION_ID}'.",
        },
    },
    scope=OperationScope.SESSION_SET,
)

session_close_tool = define_tool(
    name="stagehand_session_close",
    description=(
        "Close a browser session and release its remote browser. Closes the current session "
        "when no id is given."
    ),
    handle=handle_session_close,
    properties={
        "session_id": {
            "type": "string",
            "description": "Identifier of the session to close. Defaults to the current session.",
        },
    },
    scope=OperationScope.SESSION_SET,
)

SESSION_TOOLS = [session_create_tool, session_close_tool]
