"""Request and response schemas."""

from agent_chat.domain.errors import ErrorCode, ErrorDetail, FieldError

__all__ = [
    "ErrorCode",
    "ErrorDetail",
    "FieldError",
]
