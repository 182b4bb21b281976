"""Navigation tool."""

from .tool import ToolContext, ToolResult, define_tool, require_str, text


async def handle_navigate(ctx: ToolContext, params: dict) -> ToolResult:
    url = require_str(params, "url")

    async def action():
        try:
            await ctx.page.goto(url)
        except Exception as e:
            raise RuntimeError(f"Failed to navigate: {e}") from e

        content = [text(f"Navigated to: {url}")]
        live_view_url = ctx.handle.live_view_url if ctx.handle is not None else None
        if live_view_url:
            content.append(text(f"View the live session here: {live_view_url}"))
        return content

    return ToolResult(action=action)


navigate_tool = define_tool(
    name="stagehand_navigate",
    description=(
        "Navigate to a URL in the browser. Only use this tool with URLs you're confident "
        "will work and stay up to date. Otherwise use https://google.com as the starting point."
    ),
    handle=handle_navigate,
    properties={
        "url": {"type": "string", "description": "The URL to navigate to"},
    },
    required=["url"],
)
