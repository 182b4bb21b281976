"""Single atomic page action driven by natural language."""

from .tool import ToolContext, ToolResult, define_tool, require_str, text
from ..decorators import to_json


async def handle_act(ctx: ToolContext, params: dict) -> ToolResult:
    action_text = require_str(params, "action")
    variables = params.get("variables")
    if variables is not None and not isinstance(variables, dict):
        raise ValueError("'variables' must be an object")

    async def action():
        try:
            result = await ctx.page.act(action_text, variables=variables or None)
        except Exception as e:
            raise RuntimeError(f"Failed to perform action: {e}") from e
        return [text(f"Action performed: {action_text}\nResult: {to_json(result)}")]

    return ToolResult(action=action, capture_snapshot=True, wait_for_network=True)


act_tool = define_tool(
    name="stagehand_act",
    description=(
        "Performs an action on a web page element. Act actions should be as atomic and "
        "specific as possible, i.e. \"Click the sign in button\" or \"Type 'hello' into the "
        "search input\". AVOID actions that are more than one step, i.e. \"Order me pizza\" "
        "or \"Send an email to Paul asking him to call me\"."
    ),
    handle=handle_act,
    properties={
        "action": {
            "type": "string",
            "description": "The action to perform. Should be as atomic and specific as possible.",
        },
        "variables": {
            "type": "object",
            "additionalProperties": True,
            "description": (
                "Variables used in the action template. ONLY use variables if you're dealing "
                "with sensitive data or dynamic content. For example, if you're logging in, use "
                "{\"password\": \"123\"} and reference it as %password% in the action."
            ),
        },
    },
    required=["action"],
)
