"""Provider error classification and normalization.

- Classifies provider-specific errors into normalized error classes
- Called by the router after catching adapter exceptions
- Supports Gemini, OpenAI-compatible (OpenAI, Groq), and Anthropic error patterns

Error classes:
- E_LLM_INVALID_KEY: Authentication failure (401/403)
- E_LLM_RATE_LIMIT: Rate limit or upstream quota exceeded (429)
- E_LLM_TIMEOUT: Request timed out
- E_LLM_PROVIDER_DOWN: Provider unavailable (5xx, network error)
- E_LLM_MALFORMED_RESPONSE: 2xx response without usable text
- E_LLM_EMPTY_RESULT: Response parsed but yielded zero usable messages
- E_MODEL_NOT_AVAILABLE: Model not found or provider disabled

ProviderError never reaches the HTTP caller; the gateway retries or moves on.
"""

from enum import Enum

from luvv.logging import get_logger

logger = get_logger(__name__)


class ProviderErrorClass(str, Enum):
    """Normalized provider error classifications."""

    INVALID_KEY = "E_LLM_INVALID_KEY"
    RATE_LIMIT = "E_LLM_RATE_LIMIT"
    TIMEOUT = "E_LLM_TIMEOUT"
    PROVIDER_DOWN = "E_LLM_PROVIDER_DOWN"
    MALFORMED_RESPONSE = "E_LLM_MALFORMED_RESPONSE"
    EMPTY_RESULT = "E_LLM_EMPTY_RESULT"
    MODEL_NOT_AVAILABLE = "E_MODEL_NOT_AVAILABLE"


# Retrying these cannot succeed within the same request.
NON_RETRYABLE_ERRORS = frozenset(
    {
        ProviderErrorClass.INVALID_KEY,
        ProviderErrorClass.MODEL_NOT_AVAILABLE,
    }
)


class ProviderError(Exception):
    """Exception for a single failed provider call.

    Attributes:
        error_class: The normalized error classification
        message: Human-readable error message
        provider: The provider that returned the error (if known)
    """

    def __init__(
        self,
        error_class: ProviderErrorClass,
        message: str,
        provider: str | None = None,
    ):
        self.error_class = error_class
        self.message = message
        self.provider = provider
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Whether another attempt against the same provider may succeed."""
        return self.error_class not in NON_RETRYABLE_ERRORS


def classify_provider_error(
    provider: str,
    status_code: int | None,
    json_body: dict | None,
    exception: Exception | None,
) -> ProviderErrorClass:
    """Classify provider error into normalized error class.

    Args:
        provider: One of "gemini", "groq", "openai", "anthropic"
        status_code: HTTP status code (if available)
        json_body: Parsed JSON error response (if available)
        exception: The exception that was raised (if any)

    Returns:
        The appropriate ProviderErrorClass for this error.
    """
    if exception is not None:
        exception_type = type(exception).__name__
        if "Timeout" in exception_type or "timeout" in str(exception).lower():
            return ProviderErrorClass.TIMEOUT
        if "Network" in exception_type or "Connection" in exception_type:
            return ProviderErrorClass.PROVIDER_DOWN

    if status_code is None:
        return ProviderErrorClass.PROVIDER_DOWN

    if provider in ("openai", "groq"):
        return _classify_openai_compatible_error(status_code, json_body)
    elif provider == "anthropic":
        return _classify_anthropic_error(status_code, json_body)
    elif provider == "gemini":
        return _classify_gemini_error(status_code, json_body)
    else:
        logger.warning("unknown_provider_for_error_classification", provider=provider)
        return ProviderErrorClass.PROVIDER_DOWN


def _classify_openai_compatible_error(status_code: int, json_body: dict | None) -> ProviderErrorClass:
    """Classify OpenAI and Groq errors (Groq mirrors the OpenAI error shape).

    - 401 or 403 → INVALID_KEY
    - 429 → RATE_LIMIT
    - 404, or 400 mentioning a missing model → MODEL_NOT_AVAILABLE
    - 5xx → PROVIDER_DOWN
    """
    if status_code in (401, 403):
        return ProviderErrorClass.INVALID_KEY

    if status_code == 429:
        return ProviderErrorClass.RATE_LIMIT

    if status_code == 404:
        return ProviderErrorClass.MODEL_NOT_AVAILABLE

    if status_code >= 500:
        return ProviderErrorClass.PROVIDER_DOWN

    if status_code == 400 and json_body:
        error = json_body.get("error", {})
        if isinstance(error, dict):
            error_code = str(error.get("code") or "")
            error_message = str(error.get("message") or "").lower()
            if error_code == "model_not_found":
                return ProviderErrorClass.MODEL_NOT_AVAILABLE
            if "model" in error_message and (
                "not found" in error_message or "does not exist" in error_message
            ):
                return ProviderErrorClass.MODEL_NOT_AVAILABLE

    return ProviderErrorClass.PROVIDER_DOWN


def _classify_anthropic_error(status_code: int, json_body: dict | None) -> ProviderErrorClass:
    """Classify Anthropic-specific errors.

    - 401 or 403 → INVALID_KEY
    - 429 or 529 (overloaded) → RATE_LIMIT
    - 404 → MODEL_NOT_AVAILABLE
    - 5xx → PROVIDER_DOWN
    """
    if status_code in (401, 403):
        return ProviderErrorClass.INVALID_KEY

    if status_code in (429, 529):
        return ProviderErrorClass.RATE_LIMIT

    if status_code == 404:
        return ProviderErrorClass.MODEL_NOT_AVAILABLE

    if status_code >= 500:
        return ProviderErrorClass.PROVIDER_DOWN

    if status_code == 400 and json_body:
        error = json_body.get("error", {})
        if isinstance(error, dict) and error.get("type") == "not_found_error":
            return ProviderErrorClass.MODEL_NOT_AVAILABLE

    return ProviderErrorClass.PROVIDER_DOWN


def _classify_gemini_error(status_code: int, json_body: dict | None) -> ProviderErrorClass:
    """Classify Gemini-specific errors.

    - 401 or 403 or "API_KEY_INVALID" in body → INVALID_KEY
    - 429 or "RESOURCE_EXHAUSTED" → RATE_LIMIT
    - 404 or "model not found" → MODEL_NOT_AVAILABLE
    - 5xx → PROVIDER_DOWN
    """
    body_str = str(json_body).lower() if json_body else ""

    if "api_key_invalid" in body_str:
        return ProviderErrorClass.INVALID_KEY

    if status_code in (401, 403):
        return ProviderErrorClass.INVALID_KEY

    if status_code == 429 or "resource_exhausted" in body_str:
        return ProviderErrorClass.RATE_LIMIT

    if status_code == 404 or "model not found" in body_str:
        return ProviderErrorClass.MODEL_NOT_AVAILABLE

    return ProviderErrorClass.PROVIDER_DOWN
