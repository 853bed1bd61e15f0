"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
Provider-level failures live in luvv.services.llm.errors and never reach
this layer directly; the gateway absorbs them.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_MISSING_FIELD = "E_MISSING_FIELD"
    E_UNKNOWN_RELATIONSHIP = "E_UNKNOWN_RELATIONSHIP"
    E_UNKNOWN_TONE = "E_UNKNOWN_TONE"

    # Server errors
    E_GENERATION_FAILED = "E_GENERATION_FAILED"  # 503
    E_INTERNAL = "E_INTERNAL"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_MISSING_FIELD: 400,
    ApiErrorCode.E_UNKNOWN_RELATIONSHIP: 400,
    ApiErrorCode.E_UNKNOWN_TONE: 400,
    ApiErrorCode.E_GENERATION_FAILED: 503,
    ApiErrorCode.E_INTERNAL: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class InvalidRequestError(ApiError):
    """Request validation failure. Never retried."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class GenerationFailedError(ApiError):
    """Cache, every provider and the safety net were all exhausted.

    Fatal for the request, not for the process: a later request can succeed
    once templates are seeded or a provider recovers.
    """

    def __init__(
        self,
        code: ApiErrorCode = ApiErrorCode.E_GENERATION_FAILED,
        message: str = "Cupid's ink ran dry. All models and fallbacks failed.",
    ):
        super().__init__(code, message)
