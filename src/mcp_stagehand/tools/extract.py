"""
Extraction tool.

With an instruction the engine extracts structured data (optionally shaped by
a JSON schema). Without one, the visible text of the page is returned after
cleaning.
"""

import json
from typing import Optional

from .tool import ToolContext, ToolResult, define_tool, optional_str, text
from ..cleaners import extract_page_text
from ..decorators import to_json


def parse_schema(raw: Optional[str]) -> Optional[dict]:
    """Parse the schema argument. Raises ValueError("Invalid schema format: ...")."""
    if raw is None:
        return None
    try:
        schema = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid schema format: {e}") from e
    if not isinstance(schema, dict):
        raise ValueError("Invalid schema format: expected a JSON object")
    return schema


async def handle_extract(ctx: ToolContext, params: dict) -> ToolResult:
    instruction = optional_str(params, "instruction")
    schema = parse_schema(optional_str(params, "schema"))
    if schema is not None and instruction is None:
        raise ValueError("'instruction' is required when 'schema' is given")

    async def extract_data():
        try:
            data = await ctx.page.extract(instruction, schema=schema)
        except Exception as e:
            raise RuntimeError(f"Failed to extract data: {e}") from e
        return [text(f"Data extracted:\n{to_json(data)}")]

    async def extract_text():
        try:
            html = await ctx.page.content()
        except Exception as e:
            raise RuntimeError(f"Failed to extract content: {e}") from e
        return [text(f"Extracted content:\n{extract_page_text(html)}")]

    return ToolResult(
        action=extract_data if instruction else extract_text,
        wait_for_network=True,
    )


extract_tool = define_tool(
    name="stagehand_extract",
    description=(
        "Extracts data from the current page. Give an instruction (and optionally a JSON "
        "schema) to extract structured data, or call it without arguments to get all of "
        "the visible text of the page."
    ),
    handle=handle_extract,
    properties={
        "instruction": {
            "type": "string",
            "description": "What to extract, e.g. 'the title and price of every product'",
        },
        "schema": {
            "type": "string",
            "description": "Optional JSON schema (as a JSON string) describing the shape of the result",
        },
    },
)
