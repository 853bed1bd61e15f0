"""Abstract base class for LLM adapters.

Rules:
- Async adapters with httpx.AsyncClient
- No retries inside adapters (the gateway owns retry and backoff)
- No DB access
- No logging of request/response bodies
- Raw httpx errors bubble up to the router for classification
- A 2xx body without usable text raises ProviderError(MALFORMED_RESPONSE)
- Each adapter handles Turn → provider format conversion internally
"""

from abc import ABC, abstractmethod

import httpx

from luvv.services.llm.errors import ProviderError, ProviderErrorClass
from luvv.services.llm.types import LLMRequest, LLMResponse

# Connect timeout is fixed; the read budget comes from the caller.
CONNECT_TIMEOUT_S = 5.0


class LLMAdapter(ABC):
    """Abstract base class for LLM provider adapters.

    Each adapter implements provider-specific HTTP communication and
    Turn → provider format conversion.
    """

    #: Router registry key; also used for error classification.
    name: str = ""

    def __init__(self, client: httpx.AsyncClient):
        """Initialize adapter with shared HTTP client.

        Args:
            client: Shared httpx.AsyncClient for connection pooling.
        """
        self._client = client

    @abstractmethod
    async def generate(
        self,
        req: LLMRequest,
        *,
        api_key: str,
        timeout_s: float,
    ) -> LLMResponse:
        """Single non-streaming generation.

        Args:
            req: The LLM request containing model, messages, and parameters.
            api_key: The API key for authentication.
            timeout_s: Per-attempt request timeout in seconds.

        Returns:
            LLMResponse with the raw generated text and usage info.

        Raises:
            httpx.HTTPStatusError: On non-2xx HTTP response.
            httpx.TimeoutException: On request timeout.
            httpx.NetworkError: On network failure.
            ProviderError: If the body has no usable text.
        """

    def _timeout(self, timeout_s: float) -> httpx.Timeout:
        return httpx.Timeout(timeout_s, connect=min(CONNECT_TIMEOUT_S, timeout_s))

    def _json_object(self, response: httpx.Response) -> dict:
        """Decode a 2xx body that must be a JSON object."""
        data = response.json()
        if not isinstance(data, dict):
            raise ProviderError(
                ProviderErrorClass.MALFORMED_RESPONSE,
                f"{self.name} response body is not a JSON object",
                provider=self.name,
            )
        return data
