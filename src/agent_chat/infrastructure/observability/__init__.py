"""Logging, log context and metrics."""

from agent_chat.infrastructure.observability.context import log_context
from agent_chat.infrastructure.observability.logging import configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "log_context",
]
