"""
Global constants and configuration defaults.
No dependencies - safe to import from anywhere.
"""

import os

# ============================================================================
# Server Identity
# ============================================================================

SERVER_NAME = "mcp_stagehand"
"""Name announced to MCP clients during initialization."""


# ============================================================================
# Session Configuration
# ============================================================================

DEFAULT_SESSION_ID = os.getenv("MCP_DEFAULT_SESSION_ID", "default")
"""Session identifier a fresh connection resolves to before any session_create call."""

DOM_SETTLE_TIMEOUT_MS = int(os.getenv("STAGEHAND_DOM_SETTLE_TIMEOUT_MS", "30000"))
"""How long the engine waits for the DOM to settle before acting."""

NETWORK_SETTLE_TIMEOUT_MS = int(os.getenv("MCP_NETWORK_SETTLE_TIMEOUT_MS", "5000"))
"""Upper bound for the post-action network-idle wait."""

SESSION_PROBE_EXPRESSION = "() => document.title"
"""Trivial expression evaluated to check that a cached session is still alive."""


# ============================================================================
# Shutdown Configuration
# ============================================================================

SHUTDOWN_GRACE_SECS = float(os.getenv("MCP_SHUTDOWN_GRACE_SECS", "15"))
"""Hard ceiling for graceful shutdown before the process exits regardless."""


# ============================================================================
# Transport Configuration
# ============================================================================

DEFAULT_PORT = int(os.getenv("PORT", "8081"))
"""Port used by the SSE transport."""

DEFAULT_HOST = os.getenv("MCP_HOST", "127.0.0.1")
"""Interface the SSE transport binds to."""


# ============================================================================
# Engine Defaults
# ============================================================================

DEFAULT_MODEL_NAME = "gpt-4o"
"""Model used by the stagehand engine for act/observe/extract."""

DEFAULT_AGENT_MODEL = "computer-use-preview"
"""Model used by the autonomous agent tool."""

DEFAULT_AGENT_INSTRUCTIONS = "You are a helpful assistant that can use a web browser."

BROWSERBASE_LIVE_VIEW_URL = "https://www.browserbase.com/sessions/{session_id}"


__all__ = [
    "SERVER_NAME",
    "DEFAULT_SESSION_ID",
    "DOM_SETTLE_TIMEOUT_MS",
    "NETWORK_SETTLE_TIMEOUT_MS",
    "SESSION_PROBE_EXPRESSION",
    "SHUTDOWN_GRACE_SECS",
    "DEFAULT_PORT",
    "DEFAULT_HOST",
    "DEFAULT_MODEL_NAME",
    "DEFAULT_AGENT_MODEL",
    "DEFAULT_AGENT_INSTRUCTIONS",
    "BROWSERBASE_LIVE_VIEW_URL",
]
