"""Observation tool: find actionable elements."""

from .tool import ToolContext, ToolResult, define_tool, require_str, text
from ..decorators import to_json


async def handle_observe(ctx: ToolContext, params: dict) -> ToolResult:
    instruction = require_str(params, "instruction")

    async def action():
        try:
            observations = await ctx.page.observe(instruction)
        except Exception as e:
            raise RuntimeError(f"Failed to observe: {e}") from e
        return [text(f"Observations: {to_json(observations, indent=None)}")]

    return ToolResult(action=action)


observe_tool = define_tool(
    name="stagehand_observe",
    description=(
        "Observes elements on the web page. Use this tool to observe elements that you can "
        "later use in an action. Use observe instead of extract when dealing with actionable "
        "(interactable) elements rather than text."
    ),
    handle=handle_observe,
    properties={
        "instruction": {
            "type": "string",
            "description": (
                "Instruction for observation (e.g., 'find the login button'). "
                "This instruction must be extremely specific."
            ),
        },
    },
    required=["instruction"],
)
