"""Configuration management for the browser automation server."""

from .environment import (
    ENGINES,
    EngineConfig,
    get_env_config,
    validate_engine_config,
)

__all__ = [
    "ENGINES",
    "EngineConfig",
    "get_env_config",
    "validate_engine_config",
]
