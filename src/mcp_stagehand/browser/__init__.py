"""Browser engine boundary and session management."""

from .engine import (
    EngineAgent,
    EngineHandle,
    EnginePage,
    create_handle,
    is_session_destroyed,
)
from .sessions import Session, SessionRegistry

__all__ = [
    "EngineAgent",
    "EngineHandle",
    "EnginePage",
    "create_handle",
    "is_session_destroyed",
    "Session",
    "SessionRegistry",
]
