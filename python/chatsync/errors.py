"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
The same exceptions are raised by the relational adapters and the storage
ports, so a failure keeps its meaning whether it surfaces over HTTP or
inside a background flush.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_STORE_NOT_FOUND = "E_STORE_NOT_FOUND"
    E_CONVERSATION_NOT_FOUND = "E_CONVERSATION_NOT_FOUND"
    E_LLM_NOT_FOUND = "E_LLM_NOT_FOUND"
    E_METRICS_NOT_FOUND = "E_METRICS_NOT_FOUND"

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_ID_MISMATCH = "E_ID_MISMATCH"
    E_INVALID_OPERATION = "E_INVALID_OPERATION"

    # Server errors
    E_INTERNAL = "E_INTERNAL"  # 500
    E_STORAGE_ERROR = "E_STORAGE_ERROR"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_STORE_NOT_FOUND: 404,
    ApiErrorCode.E_CONVERSATION_NOT_FOUND: 404,
    ApiErrorCode.E_LLM_NOT_FOUND: 404,
    ApiErrorCode.E_METRICS_NOT_FOUND: 404,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_ID_MISMATCH: 400,
    ApiErrorCode.E_INVALID_OPERATION: 400,
    ApiErrorCode.E_INTERNAL: 500,
    ApiErrorCode.E_STORAGE_ERROR: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
        details: Optional diagnostic detail (driver message, upstream body)
    """

    def __init__(self, code: ApiErrorCode, message: str, details: str | None = None):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    """Invalid request error (missing or mismatched required field)."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class StorageError(ApiError):
    """Backing store failure (driver, I/O, or upstream API).

    The transaction that raised it has already been rolled back, so the
    previously committed aggregate is untouched.
    """

    def __init__(self, message: str = "Storage operation failed", details: str | None = None):
        super().__init__(ApiErrorCode.E_STORAGE_ERROR, message, details)
