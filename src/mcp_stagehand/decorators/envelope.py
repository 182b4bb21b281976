# mcp_stagehand/decorators/envelope.py

import os
import json
import asyncio
import functools
import traceback
from typing import Any, Callable

from mcp import types

import logging
logger = logging.getLogger(__name__)


__all__ = [
    "tool_envelope",
    "normalize_result",
    "error_result",
    "to_json",
]


CONTENT_TYPES = (
    types.TextContent,
    types.ImageContent,
    types.EmbeddedResource,
)


def to_json(value: Any, indent: int = 2) -> str:
    """Serialize engine results (pydantic models, dataclasses, plain objects) to JSON text."""

    def _default(o):
        model_dump = getattr(o, "model_dump", None)
        if callable(model_dump):
            return model_dump()
        return getattr(o, "__dict__", repr(o))

    return json.dumps(value, indent=indent, ensure_ascii=False, default=_default)


def normalize_result(value: Any) -> types.CallToolResult:
    """
    Coerce whatever an operation returned into a CallToolResult:
      - CallToolResult: returned as is
      - None: empty content
      - str / bytes: a single text block
      - content block or list of blocks: used as content
      - anything else: a JSON text block
    """
    if isinstance(value, types.CallToolResult):
        return value
    if value is None:
        return types.CallToolResult(content=[], isError=False)
    if isinstance(value, bytes):
        value = value.decode("utf-8", "replace")
    if isinstance(value, str):
        return types.CallToolResult(content=[types.TextContent(type="text", text=value)], isError=False)
    if isinstance(value, CONTENT_TYPES):
        return types.CallToolResult(content=[value], isError=False)
    if isinstance(value, (list, tuple)) and all(isinstance(v, CONTENT_TYPES) for v in value):
        return types.CallToolResult(content=list(value), isError=False)
    return types.CallToolResult(content=[types.TextContent(type="text", text=to_json(value))], isError=False)


def error_result(err: BaseException, include_tb: bool = False) -> types.CallToolResult:
    """Uniform error envelope: the message first, then details/traceback if any."""
    content = [types.TextContent(type="text", text=str(err) or err.__class__.__name__)]
    details = getattr(err, "details", None)
    if details:
        content.append(types.TextContent(type="text", text=str(details)))
    if include_tb:
        content.append(types.TextContent(type="text", text=traceback.format_exc()))
    return types.CallToolResult(content=content, isError=True)


def tool_envelope(func: Callable):
    """
    Decorator for the coroutine that executes one operation:
      - On success: normalizes the return value into a CallToolResult.
      - On error: returns an isError CallToolResult carrying the message.
      - asyncio.CancelledError is re-raised.
    Environment:
      - Set MCP_TOOL_ERRORS_TRACEBACK=1 to append the traceback to error results.
    """
    include_tb = os.getenv("MCP_TOOL_ERRORS_TRACEBACK", "0") in ("1", "true", "True")

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            result = await func(*args, **kwargs)
        except asyncio.CancelledError:
            # Preserve cooperative cancellation semantics
            raise
        except Exception as e:
            logger.debug("Operation failed", exc_info=True)
            return error_result(e, include_tb=include_tb)
        return normalize_result(result)
    return wrapper
