"""Exception types raised across the server.

Anything raised while a tool runs is turned into an ``isError`` result by
``tool_envelope``. Only ``UnknownOperationError`` is meant to escape as a
protocol-level fault.
"""

from typing import Optional


class StagehandServerError(Exception):
    """Base class for errors raised by this package."""


class UnknownOperationError(StagehandServerError):
    """A call named an operation that is not in the catalog."""

    def __init__(self, name: Optional[str]):
        self.name = name
        super().__init__(f"Invalid tool name: {name}")


class SessionCreationError(StagehandServerError):
    """The engine could not create a browser session."""

    def __init__(self, session_id: str, cause: BaseException):
        self.session_id = session_id
        self.cause = cause
        super().__init__(f"Failed to initialize browser session '{session_id}': {cause}")


class NoActiveSessionError(StagehandServerError):
    """An operation needed a page but none could be resolved."""

    def __init__(self, session_id: str, reason: str = "", details: Optional[str] = None):
        self.session_id = session_id
        self.details = details
        message = f"No active page available for session '{session_id}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class UnsupportedCapabilityError(StagehandServerError):
    """The configured engine cannot perform the requested capability."""

    def __init__(self, engine: str, capability: str):
        self.engine = engine
        self.capability = capability
        super().__init__(
            f"The {engine} engine does not support '{capability}'. "
            f"Set STAGEHAND_ENGINE=stagehand to use AI-driven browser actions."
        )


__all__ = [
    "StagehandServerError",
    "UnknownOperationError",
    "SessionCreationError",
    "NoActiveSessionError",
    "UnsupportedCapabilityError",
]
