"""
Browser automation for AI agents over MCP.

## How Connections and Sessions are Handled

Every MCP connection gets its own AutomationContext. A context owns any
number of named browser sessions and points at one "current" session. The
first tool that needs a page creates the `default` session, so an agent can
simply call `stagehand_navigate` without opening a browser first.

Agents that want several browsers call `stagehand_session_create` with a
`session_id` and switch between them the same way. Sessions are never shared
between connections.

If the remote browser dies underneath us (network blip, Browserbase timeout,
someone closed the window) the next tool call notices during its health
probe and transparently creates a replacement under the same id.

## Engines

* `stagehand` (default): AI-driven `act`, `observe`, `extract` and `agent`
  on Browserbase, or on a local Chrome reachable through `LOCAL_CDP_URL`.
* `selenium`: plain WebDriver. Navigation, text extraction and screenshots
  work; the AI tools report that the engine does not support them.

## Shutdown

SIGINT, SIGTERM and stdin closing all start the same drain: every
connection closes its sessions concurrently, and the process exits after
at most `MCP_SHUTDOWN_GRACE_SECS` seconds even if a remote browser hangs.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
