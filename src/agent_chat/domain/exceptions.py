"""
Exception hierarchy for the agent chat service.

All exceptions inherit from AppError which provides:
- error_code: Machine-readable error code (from ErrorCode enum)
- status_code: HTTP status code for API responses
- message: Human-readable error message
- details: Optional dictionary with additional context
- suggested_action: Optional user-friendly suggestion for resolution

The taxonomy follows how failures are surfaced:
- ConfigurationError (missing default agent, missing credential) is fatal at
  first use and reported distinctly from request errors.
- ValidationError (malformed request, malformed tool input) is raised before
  any external call.
- ProviderError is a model transport failure: a failed turn, never retried.
- HistoryStoreError never leaves the history side-channel.

Usage:
    from agent_chat.domain.exceptions import MissingCredential

    raise MissingCredential(
        "GOOGLE_GENERATIVE_AI_API_KEY environment variable is required",
        details={"model_family": "gemini"},
    )
"""

from typing import Any, Optional
from agent_chat.domain.errors import ErrorCode, ErrorDetail, field_errors_from


class AppError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        error_code: Machine-readable error code (from ErrorCode enum)
        status_code: HTTP status code (default: 500)
        message: Human-readable error message
        details: Optional dictionary with additional error context
        suggested_action: Optional user-friendly suggestion for resolution
    """

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500
    default_message: str = "An unexpected error occurred"
    default_suggested_action: Optional[str] = None

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        suggested_action: Optional[str] = None,
    ):
        self.message = message or self.default_message
        self.details = details or {}
        self.suggested_action = suggested_action or self.default_suggested_action
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"error_code={self.error_code.value}, "
            f"status_code={self.status_code}, "
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )


# ========================================
# Configuration Errors (500)
# ========================================


class ConfigurationError(AppError):
    """Deployment misconfiguration (agents file, default agent, executors)."""

    status_code = 500
    error_code = ErrorCode.CONFIGURATION_ERROR
    default_message = "Service configuration is invalid"
    default_suggested_action = "Please contact the service operator"


class MissingCredential(ConfigurationError):
    """A model family credential is absent. Never retried automatically."""

    error_code = ErrorCode.MISSING_CREDENTIAL
    default_message = "Model provider credential is not configured"


# ========================================
# Authentication Errors (401)
# ========================================


class AuthError(AppError):
    """Authentication required."""

    status_code = 401
    error_code = ErrorCode.UNAUTHORIZED
    default_message = "Authentication required"
    default_suggested_action = "Please sign in and try again"


# ========================================
# Validation Errors (400)
# ========================================


class ValidationError(AppError):
    """Request validation failed."""

    status_code = 400
    error_code = ErrorCode.VALIDATION_ERROR
    default_message = "Request validation failed"
    default_suggested_action = "Please check your input and try again"


class InvalidRequest(ValidationError):
    """Request format or content is invalid."""

    error_code = ErrorCode.INVALID_REQUEST
    default_message = "Invalid request"


class ToolInputError(ValidationError):
    """Tool arguments violate the tool's input contract."""

    error_code = ErrorCode.TOOL_INPUT_INVALID
    default_message = "Tool input does not match its contract"

    def __init__(
        self,
        tool_name: str,
        message: Optional[str] = None,
        errors: Optional[list[dict[str, Any]]] = None,
    ):
        self.tool_name = tool_name
        self.errors = errors or []
        super().__init__(
            message or f"Invalid input for tool '{tool_name}'",
            details={"tool": tool_name, "errors": self.errors},
        )


class UnknownTool(ToolInputError):
    """The requested tool is not part of the turn's tool set."""

    error_code = ErrorCode.UNKNOWN_TOOL
    default_message = "Tool is not available"

    def __init__(self, tool_name: str):
        super().__init__(tool_name, f"Tool '{tool_name}' is not available for this request")


# ========================================
# External Service Errors
# ========================================


class ExternalError(AppError):
    """Base class for external service errors."""

    default_message = "An external service error occurred"
    default_suggested_action = "An external service is currently unavailable. Please try again later"


class ProviderError(ExternalError):
    """Model provider transport failure."""

    status_code = 502
    error_code = ErrorCode.EXTERNAL_SERVICE_ERROR
    default_message = "Language model service error"
    default_suggested_action = "The AI service is currently unavailable. Please try again in a few moments"


class HistoryStoreError(ExternalError):
    """History store operation failed. Never surfaced to callers."""

    status_code = 503
    error_code = ErrorCode.DATABASE_ERROR
    default_message = "History store operation failed"


def error_payload(error: AppError) -> dict[str, Any]:
    """
    Structured error body for stream ``error`` events and rejected tool results.

    Tool input errors carry field-level details; every other error carries its
    details as context.
    """
    if isinstance(error, ToolInputError):
        detail = ErrorDetail(
            code=error.error_code,
            message=error.message,
            details=field_errors_from(error.errors) if error.errors else None,
        )
    else:
        detail = ErrorDetail(
            code=error.error_code,
            message=error.message,
            context=error.details or None,
        )
    return detail.model_dump(mode="json", exclude_none=True)
