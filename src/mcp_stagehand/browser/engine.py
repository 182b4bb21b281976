"""
Boundary to the browser automation engine.

The server never drives the DOM itself. Everything below this module is an
opaque capability: given a handle and an instruction, perform, observe or
extract and return a value, or raise. Two backends implement it:

- stagehand_engine: AI-driven act/observe/extract/agent (Browserbase or a local CDP browser)
- selenium_engine: plain WebDriver navigation, evaluation and screenshots
"""

import abc
from typing import Any, Optional

from selenium.common.exceptions import InvalidSessionIdException, NoSuchWindowException

from ..config import EngineConfig, validate_engine_config


# Error messages that mean the remote browser is gone for good. Anything else
# raised by a probe is a real failure and is not healed.
SESSION_DESTROYED_SIGNATURES = (
    "Target page, context or browser has been closed",
    "Session expired",
    "context destroyed",
    "invalid session id",
    "no such window",
)


def is_session_destroyed(exc: BaseException) -> bool:
    """Return True if exc says the underlying browser session no longer exists."""
    if isinstance(exc, (InvalidSessionIdException, NoSuchWindowException)):
        return True
    message = str(exc).lower()
    return any(signature.lower() in message for signature in SESSION_DESTROYED_SIGNATURES)


class EnginePage(abc.ABC):
    """The active page of an engine handle."""

    @abc.abstractmethod
    async def goto(self, url: str) -> None: ...

    @abc.abstractmethod
    async def act(self, action: str, variables: Optional[dict] = None) -> Any: ...

    @abc.abstractmethod
    async def observe(self, instruction: str) -> Any: ...

    @abc.abstractmethod
    async def extract(self, instruction: str, schema: Optional[dict] = None) -> Any: ...

    @abc.abstractmethod
    async def evaluate(self, expression: str) -> Any:
        """Evaluate a JavaScript function expression, e.g. ``"() => document.title"``."""

    @abc.abstractmethod
    async def content(self) -> str:
        """Return the current document HTML."""

    @abc.abstractmethod
    async def screenshot(self, full_page: bool = False) -> bytes:
        """Return a PNG screenshot."""

    @abc.abstractmethod
    async def wait_for_settle(self, timeout_ms: int) -> None:
        """Wait until network/document activity settles, or raise on timeout."""


class EngineAgent(abc.ABC):
    """An autonomous multi-step agent bound to one handle."""

    @abc.abstractmethod
    async def execute(self, instruction: str, max_steps: Optional[int] = None) -> Any: ...


class EngineHandle(abc.ABC):
    """One live remote browser session."""

    engine_name = "engine"

    @property
    @abc.abstractmethod
    def page(self) -> EnginePage: ...

    @property
    @abc.abstractmethod
    def browser(self) -> Any:
        """Engine-native browser object (browser context, WebDriver, ...)."""

    @property
    def session_id(self) -> Optional[str]:
        """Identifier of the remote session, when the engine has one."""
        return None

    @property
    def live_view_url(self) -> Optional[str]:
        """URL where the session can be watched live, when available."""
        return None

    @abc.abstractmethod
    async def probe(self) -> None:
        """Cheap no-op against the session. Raises if the session is dead."""

    @abc.abstractmethod
    def agent(self, options: dict) -> EngineAgent: ...

    @abc.abstractmethod
    async def close(self) -> None: ...


async def create_handle(config: EngineConfig) -> EngineHandle:
    """Create and initialize a handle for the engine named by config.engine."""
    validate_engine_config(config)

    if config.engine == "selenium":
        from .selenium_engine import SeleniumEngineHandle
        return await SeleniumEngineHandle.create(config)

    from .stagehand_engine import StagehandEngineHandle
    return await StagehandEngineHandle.create(config)


__all__ = [
    "SESSION_DESTROYED_SIGNATURES",
    "is_session_destroyed",
    "EnginePage",
    "EngineAgent",
    "EngineHandle",
    "create_handle",
]
