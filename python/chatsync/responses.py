"""API response envelope helpers and exception handlers.

All API responses use a consistent envelope:
- Success: { "success": true, "data": ..., "timestamp": "...", ...extra }
- Error: { "success": false, "error": { "code": "E_...", "message": "...",
  "request_id": "...", "details": "..." } }

The request_id is included in error responses for debugging and support.
"""

from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

from chatsync.errors import ApiError, ApiErrorCode
from chatsync.logging import get_logger, get_request_id

logger = get_logger(__name__)


def success_response(data: Any = None, message: str | None = None, **extra: Any) -> dict[str, Any]:
    """Create a success response envelope.

    Args:
        data: The response data to wrap.
        message: Optional human-readable confirmation.
        **extra: Additional top-level fields (e.g. name, version, type).

    Returns:
        Dict with "success" and "data" keys plus a timestamp.
    """
    body: dict[str, Any] = {"success": True, "data": data}
    if message is not None:
        body["message"] = message
    body.update(extra)
    body["timestamp"] = datetime.now(timezone.utc).isoformat()
    return body


def error_response(
    code: ApiErrorCode,
    message: str,
    request_id: str | None = None,
    details: str | None = None,
) -> dict[str, Any]:
    """Create an error response envelope.

    Args:
        code: The error code enum value.
        message: Human-readable error message.
        request_id: Optional request ID for correlation (auto-populated from context if None).
        details: Optional diagnostic detail.

    Returns:
        Dict with "success": false and an "error" object.
    """
    if request_id is None:
        request_id = get_request_id()

    error: dict[str, Any] = {"code": code.value, "message": message}
    if request_id:
        error["request_id"] = request_id
    if details:
        error["details"] = details

    return {"success": False, "error": error}


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Handle ApiError exceptions and return proper JSON response."""
    if exc.status_code >= 500:
        logger.error(
            "api_error",
            code=exc.code.value,
            message=exc.message,
            details=exc.details,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message, details=exc.details),
    )


async def http_exception_handler(request: Request, exc: Any) -> JSONResponse:
    """Handle FastAPI HTTPException and return proper JSON response."""
    status_to_code = {
        400: ApiErrorCode.E_INVALID_REQUEST,
        404: ApiErrorCode.E_NOT_FOUND,
        405: ApiErrorCode.E_INVALID_REQUEST,
        422: ApiErrorCode.E_INVALID_REQUEST,
    }
    code = status_to_code.get(exc.status_code, ApiErrorCode.E_INTERNAL)
    message = str(exc.detail) if exc.detail else "An error occurred"
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(code, message),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions and return 500 with E_INTERNAL.

    Logs the exception server-side but never leaks details to client.
    """
    logger.exception("unhandled_exception", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=500,
        content=error_response(ApiErrorCode.E_INTERNAL, "Internal server error"),
    )
