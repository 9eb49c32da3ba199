"""
Log context management for adding contextual information to structured logs.

Usage:
    from agent_chat.infrastructure.observability.context import log_context

    with log_context(agent_id="chat-assistant", turn_id="abc"):
        logger.info("turn dispatched")  # Includes agent_id and turn_id
"""
from typing import Any
from contextlib import contextmanager
import structlog


@contextmanager
def log_context(**kwargs: Any):
    """
    Context manager for adding context to logs.

    All key-value pairs passed to this context manager will be automatically
    included in all log entries made within the context.

    Args:
        **kwargs: Key-value pairs to add to log context

    Example:
        >>> with log_context(agent_id="chat-assistant"):
        ...     logger.info("Resolving provider")  # Includes agent_id
        >>> logger.info("Outside context")  # Does not include agent_id
    """
    tokens = structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)


__all__ = ["log_context"]
