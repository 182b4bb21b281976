# mcp_stagehand/decorators/__init__.py
#
# Re-exports decorators and envelope helpers.

from .envelope import tool_envelope, normalize_result, error_result, to_json

__all__ = [
    "tool_envelope",
    "normalize_result",
    "error_result",
    "to_json",
]
