"""Screenshot tool. Screenshots are kept as screenshot:// resources."""

import base64

from mcp import types

from .tool import ToolContext, ToolResult, define_tool, text

import logging
logger = logging.getLogger(__name__)


async def handle_screenshot(ctx: ToolContext, params: dict) -> ToolResult:
    async def action():
        try:
            png = await ctx.page.screenshot(full_page=False)
        except Exception as e:
            raise RuntimeError(f"Failed to take screenshot: {e}") from e

        name = ctx.context.screenshots.add(png)
        logger.info("Stored screenshot %s (%d bytes)", name, len(png))
        await ctx.context.notify_resources_changed()

        return [
            text(f"Screenshot taken with name: {name}"),
            types.ImageContent(
                type="image",
                data=base64.b64encode(png).decode("ascii"),
                mimeType="image/png",
            ),
        ]

    return ToolResult(action=action)


screenshot_tool = define_tool(
    name="stagehand_screenshot",
    description=(
        "Takes a screenshot of the current page. Use this tool to learn where you are on the "
        "page when controlling the browser. Only use this tool when the other tools are not "
        "sufficient to get the information you need."
    ),
    handle=handle_screenshot,
)
