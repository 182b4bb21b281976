"""Diagnostics and debugging information utility functions."""

import sys
import platform
from importlib import metadata
from typing import TYPE_CHECKING, List, Optional

import psutil

if TYPE_CHECKING:
    from ..context import AutomationContext


BROWSER_PROCESS_NAMES = ("chrome", "chromium", "chromedriver", "headless_shell")


def _package_version(name: str) -> str:
    try:
        return metadata.version(name)
    except metadata.PackageNotFoundError:
        return "<not installed>"


def count_browser_processes() -> int:
    """Number of browser/driver processes spawned by this server process."""
    count = 0
    try:
        children = psutil.Process().children(recursive=True)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return 0
    for child in children:
        try:
            name = (child.name() or "").lower()
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
        if any(n in name for n in BROWSER_PROCESS_NAMES):
            count += 1
    return count


def collect_diagnostics(
    context: Optional["AutomationContext"] = None,
    exc: Optional[BaseException] = None,
    operation_log: Optional[List[str]] = None,
) -> str:
    """
    Collect diagnostic information about the engine, sessions and environment.

    Args:
        context: Connection context to report on (optional)
        exc: Exception that occurred (optional)
        operation_log: Lines logged by the failing call (optional)

    Returns:
        str: Formatted diagnostic information
    """
    parts = [
        f"OS                : {platform.system()} {platform.release()}",
        f"Python            : {sys.version.split()[0]}",
        f"mcp               : {_package_version('mcp')}",
        f"stagehand         : {_package_version('stagehand')}",
        f"selenium          : {_package_version('selenium')}",
        f"Browser processes : {count_browser_processes()}",
    ]

    if context is not None:
        config = context.config.redacted()
        parts += [
            f"Engine            : {config['engine']} ({config['env']})",
            f"Browserbase key   : {config['browserbase_api_key']}",
            f"Project id        : {config['browserbase_project_id'] or '<none>'}",
            f"Local CDP URL     : {config['local_cdp_url'] or '<none>'}",
            f"Selenium remote   : {config['selenium_remote_url'] or '<none>'}",
            f"Model             : {config['model_name']} (key {config['model_api_key']})",
            f"Current session   : {context.current_session_id}",
            f"Open sessions     : {', '.join(context.sessions.session_ids()) or '<none>'}",
        ]

    if exc:
        parts += [
            "---- ERROR ----",
            f"Error type        : {type(exc).__name__}",
            f"Error message     : {exc}",
        ]

    if operation_log:
        parts += ["---- OPERATION LOG ----", *operation_log]

    return "\n".join(parts)


__all__ = ["collect_diagnostics", "count_browser_processes"]
