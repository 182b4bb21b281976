"""Autonomous multi-step agent tool."""

from .tool import ToolContext, ToolResult, define_tool, optional_str, require_str, text
from ..constants import DEFAULT_AGENT_INSTRUCTIONS
from ..decorators import to_json


def build_agent_options(ctx: ToolContext, system_prompt=None) -> dict:
    config = ctx.context.config
    options = {
        "model": config.agent_model,
        "instructions": system_prompt or DEFAULT_AGENT_INSTRUCTIONS,
    }
    if config.agent_api_key:
        options["options"] = {"apiKey": config.agent_api_key}
    return options


async def handle_agent(ctx: ToolContext, params: dict) -> ToolResult:
    instruction = require_str(params, "instruction")
    system_prompt = optional_str(params, "system_prompt")
    max_steps = params.get("max_steps")
    if max_steps is not None and (isinstance(max_steps, bool) or not isinstance(max_steps, int) or max_steps < 1):
        raise ValueError("'max_steps' must be a positive integer")

    async def action():
        try:
            agent = ctx.handle.agent(build_agent_options(ctx, system_prompt))
            result = await agent.execute(instruction, max_steps=max_steps)
        except Exception as e:
            raise RuntimeError(f"Failed to execute agent task: {e}") from e
        return [text(f"Agent execution complete:\n{to_json(result)}")]

    return ToolResult(action=action, capture_snapshot=True, wait_for_network=True)


agent_tool = define_tool(
    name="stagehand_agent",
    description=(
        "Use the autonomous agent to accomplish a high-level, multi-step goal in the active "
        "browser session. Use this tool only when the standard tools are insufficient."
    ),
    handle=handle_agent,
    properties={
        "instruction": {
            "type": "string",
            "description": (
                "High-level task for the agent to complete, e.g. "
                "\"Open the latest pull request in the repository\"."
            ),
        },
        "system_prompt": {
            "type": "string",
            "description": "Optional system prompt with context, guidelines and constraints for the agent.",
        },
        "max_steps": {
            "type": "integer",
            "minimum": 1,
            "description": "Optional upper bound on the number of agent steps.",
        },
    },
    required=["instruction"],
)
