"""
Structured logging configuration.

Use `get_logger` from this module, not print() or logging.getLogger().
"""
from typing import Optional, Any
import re
import structlog
from agent_chat.config.settings import get_settings
from agent_chat.api.middleware.request_id import add_request_id_to_log


# Keys whose values never reach the log output
SENSITIVE_KEY_PATTERN = re.compile(
    r"(api[_-]?key|secret|password|token|authorization|credential)", re.IGNORECASE
)
EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b')
MASK = "***"


def mask_secrets_in_dict(data: dict) -> dict:
    """
    Recursively mask values stored under sensitive keys.

    Example:
        >>> mask_secrets_in_dict({"openai_api_key": "sk-123", "agent_id": "a"})
        {'openai_api_key': '***', 'agent_id': 'a'}
    """
    masked = {}
    for key, value in data.items():
        if isinstance(key, str) and SENSITIVE_KEY_PATTERN.search(key):
            masked[key] = MASK
        elif isinstance(value, dict):
            masked[key] = mask_secrets_in_dict(value)
        else:
            masked[key] = value
    return masked


def mask_secrets_processor(logger_obj: Any, method_name: str, event_dict: dict) -> dict:
    """Structlog processor that masks sensitive fields."""
    return mask_secrets_in_dict(event_dict)


def mask_email_processor(logger_obj: Any, method_name: str, event_dict: dict) -> dict:
    """Structlog processor that masks email addresses in string values."""
    for key, value in event_dict.items():
        if isinstance(value, str) and "@" in value:
            event_dict[key] = EMAIL_PATTERN.sub("***@***", value)
    return event_dict


def console_renderer_with_colors():
    """Colored console renderer for development."""
    return structlog.dev.ConsoleRenderer(
        colors=True,
        pad_event=25,
        exception_formatter=structlog.dev.plain_traceback,
    )


def json_renderer():
    """JSON renderer for production."""
    return structlog.processors.JSONRenderer()


def configure_logging() -> None:
    """
    Configure structured logging.

    This sets up the logging system with:
    - Context variable merging (for log_context usage)
    - Request ID and correlation ID tracking
    - Secret and email masking
    - JSON formatting for production or colored console for development
    """
    settings = get_settings()

    if settings.log_format == "json":
        renderer = json_renderer()
    else:
        renderer = console_renderer_with_colors()

    processors = [
        # 1. Merge context variables (allows log_context to work)
        structlog.contextvars.merge_contextvars,

        # 2. Add request ID and correlation ID
        add_request_id_to_log,

        # 3. Add log level and timestamp
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),

        # 4. Mask secrets and email addresses
        mask_secrets_processor,
        mask_email_processor,

        # 5. Stack info and exceptions
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,

        # 6. Final rendering (JSON or Console)
        renderer,
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(settings.log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Get a logger instance with structured logging support.

    Args:
        name: Logger name (typically __name__ of the module)

    Usage:
        >>> from agent_chat.infrastructure.observability.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("turn completed", agent_id="chat-assistant")

    Note:
        Use log_context for adding context to multiple log entries:
        >>> from agent_chat.infrastructure.observability.context import log_context
        >>> with log_context(turn_id="abc"):
        ...     logger.info("dispatched")  # Includes turn_id
    """
    return structlog.get_logger(name)
