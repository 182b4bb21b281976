"""Utility functions."""

from .diagnostics import collect_diagnostics
from .operation_log import (
    ClientLogHandler,
    current_operation_log,
    install_client_log_handler,
    operation_scope,
)

__all__ = [
    "collect_diagnostics",
    "ClientLogHandler",
    "current_operation_log",
    "install_client_log_handler",
    "operation_scope",
]
