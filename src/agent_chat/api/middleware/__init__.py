"""FastAPI middleware components."""

from agent_chat.api.middleware.request_id import (
    RequestIDMiddleware,
    add_request_id_to_log,
    get_correlation_id,
    get_request_id,
)

__all__ = [
    "RequestIDMiddleware",
    "add_request_id_to_log",
    "get_correlation_id",
    "get_request_id",
]
