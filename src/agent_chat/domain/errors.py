"""Error codes and the structured error body shared by HTTP responses and stream events."""

from enum import Enum
from typing import Any
from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """
    Standard error codes for API responses and in-stream error events.

    Error codes are categorized by HTTP status code ranges:
    - 4xx: Client errors
    - 5xx: Server errors
    """

    # ===== Validation Errors (400) =====
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input validation failed (400)"""

    INVALID_REQUEST = "INVALID_REQUEST"
    """Request format or content is invalid (400)"""

    TOOL_INPUT_INVALID = "TOOL_INPUT_INVALID"
    """Tool arguments do not satisfy the tool's input contract"""

    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    """The model requested a tool that is not available for this turn"""

    # ===== Authentication Errors (401) =====
    UNAUTHORIZED = "UNAUTHORIZED"
    """Authentication required (401)"""

    # ===== Not Found Errors (404) =====
    NOT_FOUND = "NOT_FOUND"
    """Resource not found (404)"""

    # ===== Server Errors (500) =====
    INTERNAL_ERROR = "INTERNAL_ERROR"
    """Internal server error (500)"""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Deployment misconfiguration (500)"""

    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"
    """A model family credential is not configured (500)"""

    DATABASE_ERROR = "DATABASE_ERROR"
    """Database operation failed (500)"""

    # ===== Upstream Errors (502) =====
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """Model provider call failed (502)"""


class FieldError(BaseModel):
    """
    Detailed error information for a specific field.

    Used in validation errors to provide field-level error details.
    """

    model_config = {"str_strip_whitespace": True}

    field: str = Field(
        ...,
        description="Field name or path (e.g., 'messages.0.content')",
        examples=["agentId", "messages.0.role", "fileName"]
    )
    message: str = Field(
        ...,
        description="Human-readable error message for this field",
        examples=["This field is required", "Input should be 'summary', 'insights' or 'questions'"]
    )
    code: str | None = Field(
        default=None,
        description="Optional machine-readable error code for this field",
        examples=["MISSING", "LITERAL_ERROR"]
    )
    value: Any | None = Field(
        default=None,
        description="The invalid value that was provided (may be omitted for security)",
    )


class ErrorDetail(BaseModel):
    """
    Detailed error information.

    Provides structured error details including:
    - Error code for programmatic handling
    - Human-readable message
    - Optional field-level validation errors
    - Optional additional context
    """

    model_config = {"str_strip_whitespace": True}

    code: ErrorCode = Field(
        ...,
        description="Machine-readable error code",
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: list[FieldError] | None = Field(
        default=None,
        description="Field-level error details (primarily for validation errors)",
    )
    context: dict[str, Any] | None = Field(
        default=None,
        description="Additional error context (e.g., agent id, model family)",
    )


def field_errors_from(validation_errors: list[dict[str, Any]]) -> list[FieldError]:
    """Convert pydantic error dicts into FieldError entries."""
    field_errors = []
    for err in validation_errors:
        field_path = ".".join(str(loc) for loc in err.get("loc", []))
        value = err.get("input")
        field_errors.append(
            FieldError(
                field=field_path,
                message=err.get("msg", "Validation error"),
                code=err.get("type", "").upper().replace(".", "_") or None,
                value=value if isinstance(value, (str, int, float, bool)) else None,
            )
        )
    return field_errors
