"""
Request ID and correlation tracking middleware.

Provides unique request identification for log correlation. Tasks spawned
with ``asyncio.create_task`` copy the current context, so detached history
writes keep the request id of the turn that scheduled them.
"""
import uuid
from contextvars import ContextVar
from typing import Any, Optional
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import structlog

# Context variable for request ID (accessible in non-request contexts)
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

logger = structlog.get_logger(__name__)


def is_valid_uuid(value: str) -> bool:
    """
    Validate if a string is a valid UUID4.

    Args:
        value: String to validate

    Returns:
        True if valid UUID4, False otherwise
    """
    try:
        uuid_obj = uuid.UUID(value, version=4)
        return str(uuid_obj) == value and uuid_obj.version == 4
    except (ValueError, AttributeError):
        return False


def get_request_id() -> Optional[str]:
    """Get current request ID from context."""
    return request_id_var.get(None)


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_correlation_id() -> Optional[str]:
    """Get current correlation ID from context."""
    return correlation_id_var.get(None)


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_var.set(correlation_id)


def add_request_id_to_log(
    logger: Any, method_name: str, event_dict: dict
) -> dict:
    """
    Structlog processor to add request ID and correlation ID to log entries.

    Args:
        logger: Logger instance
        method_name: Name of the log method
        event_dict: Log event dictionary

    Returns:
        Modified event dictionary with request_id and correlation_id
    """
    request_id = get_request_id()
    if request_id:
        event_dict.setdefault("request_id", request_id)

    correlation_id = get_correlation_id()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)

    return event_dict


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request ID and correlation tracking.

    - Generates a UUID4 request ID for each request
    - Accepts incoming X-Request-ID / X-Correlation-ID when they are valid UUID4s
    - Stores IDs in request.state and context variables
    - Adds X-Request-ID and X-Correlation-ID to response headers
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID")

        if request_id:
            # Validate incoming request ID to prevent log injection
            if not is_valid_uuid(request_id):
                logger.warning(
                    "Invalid X-Request-ID received, generating new one",
                    invalid_id=request_id,
                    client_ip=request.client.host if request.client else None
                )
                request_id = str(uuid.uuid4())
        else:
            request_id = str(uuid.uuid4())

        correlation_id = request.headers.get("X-Correlation-ID")

        if correlation_id:
            if not is_valid_uuid(correlation_id):
                logger.warning(
                    "Invalid X-Correlation-ID received, using request ID",
                    invalid_id=correlation_id,
                    client_ip=request.client.host if request.client else None
                )
                correlation_id = request_id
        else:
            correlation_id = request_id

        request.state.request_id = request_id
        request.state.correlation_id = correlation_id

        set_request_id(request_id)
        set_correlation_id(correlation_id)

        logger.debug(
            "Request received",
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Correlation-ID"] = correlation_id

        return response
