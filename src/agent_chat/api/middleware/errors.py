"""
Error handling for the FastAPI application.

This module provides:
- Exception handlers for all AppError subclasses
- Structured error responses with error codes
- Request ID tracking in error responses
- Production-safe error messages (hides internal details)
- Validation error handling with field-level details

Errors raised while a response is already streaming never reach these
handlers; the orchestrator reports them in-stream as ``error`` events.

Usage:
    from fastapi import FastAPI
    from agent_chat.api.middleware.errors import register_error_handlers

    app = FastAPI()
    register_error_handlers(app, settings)
"""

import uuid
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from agent_chat.domain.errors import ErrorCode, ErrorDetail, FieldError
from agent_chat.config.settings import Settings, get_settings
from agent_chat.domain.exceptions import AppError, ConfigurationError
from agent_chat.infrastructure.observability.logging import get_logger


logger = get_logger(__name__)

_FRIENDLY_MESSAGES = {
    "missing": "This field is required",
    "string_type": "Must be a valid string",
    "string_too_short": "Must not be empty",
    "int_type": "Must be a valid integer",
    "int_parsing": "Must be a valid integer",
    "bool_type": "Must be true or false",
    "bool_parsing": "Must be true or false",
}


def _get_request_id(request: Request) -> str:
    """Request ID set by RequestIDMiddleware, else the header, else a new one."""
    if hasattr(request.state, "request_id"):
        return request.state.request_id

    request_id = request.headers.get("x-request-id")
    if request_id:
        return request_id

    return str(uuid.uuid4())


def _create_error_response(
    error_code: ErrorCode,
    message: str,
    request_id: str,
    status_code: int,
    details: Optional[list[FieldError]] = None,
    context: Optional[dict[str, Any]] = None,
    suggested_action: Optional[str] = None,
    is_production: bool = False,
) -> JSONResponse:
    """
    Create standardized error response.

    Args:
        error_code: Machine-readable error code
        message: Human-readable error message
        request_id: Request ID for tracing
        status_code: HTTP status code
        details: Optional field-level error details
        context: Optional additional context
        suggested_action: Optional user-friendly suggestion
        is_production: Whether running in production (hides internal details)
    """
    # In production, use generic messages for 5xx errors
    if is_production and status_code >= 500:
        message = "An internal error occurred. Please try again later."
        context = None

    error_detail = ErrorDetail(
        code=error_code,
        message=message,
        details=details,
        context=context,
    )

    response_content: dict[str, Any] = {
        "error": error_detail.model_dump(mode="json", exclude_none=True),
        "request_id": request_id,
    }

    if suggested_action:
        response_content["suggested_action"] = suggested_action

    return JSONResponse(
        status_code=status_code,
        content=response_content,
    )


def _log_error(request: Request, error: AppError, request_id: str) -> None:
    log_fields = {
        "request_id": request_id,
        "path": request.url.path,
        "method": request.method,
        "status_code": error.status_code,
        "error_code": error.error_code.value,
        "error_type": type(error).__name__,
    }
    if isinstance(error, ConfigurationError):
        # Deployment problem, not a request problem
        logger.error("Configuration error", error=error.message, **log_fields)
    elif error.status_code >= 500:
        logger.error("Server error", error=error.message, **log_fields)
    elif error.status_code in (401, 403):
        logger.warning("Authentication error", error=error.message, **log_fields)
    else:
        logger.info("Client error", error=error.message, **log_fields)


def register_error_handlers(app: FastAPI, settings: Optional[Settings] = None) -> None:
    """
    Register all error handlers for the FastAPI application.

    Args:
        app: FastAPI application instance
        settings: Settings (defaults to get_settings())
    """
    settings = settings or get_settings()

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        request_id = _get_request_id(request)
        _log_error(request, exc, request_id)

        return _create_error_response(
            error_code=exc.error_code,
            message=exc.message,
            request_id=request_id,
            status_code=exc.status_code,
            context=exc.details if exc.details else None,
            suggested_action=exc.suggested_action,
            is_production=settings.is_production,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        """Convert request validation errors to field-level 400 responses."""
        request_id = _get_request_id(request)

        field_errors = []
        for error in exc.errors():
            field_path = ".".join(str(loc) for loc in error.get("loc", []))
            error_type = error.get("type", "")
            value = error.get("input")
            field_errors.append(
                FieldError(
                    field=field_path,
                    message=_FRIENDLY_MESSAGES.get(error_type, error.get("msg", "Validation error")),
                    code=error_type.upper().replace(".", "_") or None,
                    value=value if isinstance(value, (str, int, float, bool)) else None,
                )
            )

        logger.info(
            "Request validation failed",
            request_id=request_id,
            path=request.url.path,
            method=request.method,
            field_count=len(field_errors),
        )

        return _create_error_response(
            error_code=ErrorCode.VALIDATION_ERROR,
            message="Request validation failed",
            request_id=request_id,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=field_errors,
            suggested_action="Please check your input and ensure all required fields are provided correctly",
            is_production=settings.is_production,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Safe fallback for unexpected errors."""
        request_id = _get_request_id(request)

        logger.exception(
            "Unhandled exception",
            request_id=request_id,
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )

        error_message = "An unexpected error occurred"
        context = None
        if not settings.is_production:
            error_message = f"An unexpected error occurred: {exc}"
            context = {"exception_type": type(exc).__name__}

        return _create_error_response(
            error_code=ErrorCode.INTERNAL_ERROR,
            message=error_message,
            request_id=request_id,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            context=context,
            suggested_action="Please try again later. If the problem persists, contact support",
            is_production=settings.is_production,
        )
