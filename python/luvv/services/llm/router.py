"""Provider router for adapter selection and error normalization.

- Resolves adapter based on provider name
- Wraps adapter calls with error normalization
- Centralizes error classification (one place, not per adapter)

Observability:
- Emits llm.request.started / llm.request.finished / llm.request.failed events
- All events use safe_kv() to prevent sensitive data leakage

Error handling:
- Provider 401/403 → E_LLM_INVALID_KEY
- Provider 429 → E_LLM_RATE_LIMIT
- Timeout → E_LLM_TIMEOUT
- Missing model / unknown provider → E_MODEL_NOT_AVAILABLE
- Other → E_LLM_PROVIDER_DOWN
"""

import time

import httpx

from luvv.config import Settings
from luvv.logging import get_logger
from luvv.services.llm.adapter import LLMAdapter
from luvv.services.llm.anthropic_adapter import AnthropicAdapter
from luvv.services.llm.errors import ProviderError, ProviderErrorClass, classify_provider_error
from luvv.services.llm.gemini_adapter import GeminiAdapter
from luvv.services.llm.openai_adapter import GroqAdapter, OpenAIAdapter
from luvv.services.llm.types import LLMRequest, LLMResponse, ProviderSpec
from luvv.services.redact import safe_kv

logger = get_logger(__name__)

DEFAULT_TIMEOUT_S = 15.0

# Registry of adapter classes; adding a provider touches only this mapping.
ADAPTER_CLASSES: dict[str, type[LLMAdapter]] = {
    "gemini": GeminiAdapter,
    "groq": GroqAdapter,
    "openai": OpenAIAdapter,
    "anthropic": AnthropicAdapter,
}


class ProviderRouter:
    """Routes generation requests to provider adapters.

    Handles:
    - Adapter selection based on provider name
    - Error normalization across all providers
    - Observability event emission
    """

    def __init__(self, adapters: dict[str, LLMAdapter]):
        self._adapters = dict(adapters)

    @property
    def providers(self) -> list[str]:
        return list(self._adapters)

    def resolve_adapter(self, provider: str) -> LLMAdapter:
        """Get adapter for provider.

        Raises:
            ProviderError: If provider is unknown.
        """
        adapter = self._adapters.get(provider)
        if adapter is None:
            raise ProviderError(
                ProviderErrorClass.MODEL_NOT_AVAILABLE,
                f"Unknown provider: {provider}",
                provider=provider,
            )
        return adapter

    def is_provider_available(self, provider: str) -> bool:
        return provider in self._adapters

    async def generate(
        self,
        provider: str,
        req: LLMRequest,
        api_key: str,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        attempt: int = 1,
    ) -> LLMResponse:
        """Single provider call with error normalization.

        Args:
            provider: Registered provider name.
            req: The LLM request.
            api_key: API key for the provider.
            timeout_s: Per-attempt timeout in seconds.
            attempt: Attempt number, for logging only.

        Returns:
            LLMResponse with raw generated text and usage info.

        Raises:
            ProviderError: With normalized error class on failure.
        """
        adapter = self.resolve_adapter(provider)
        base = {
            "provider": provider,
            "model_name": req.model_name,
            "attempt": attempt,
        }

        logger.info(
            "llm.request.started",
            **safe_kv(
                **base,
                prompt_chars=sum(len(m.content) for m in req.messages),
            ),
        )

        start = time.monotonic()

        try:
            response = await adapter.generate(req, api_key=api_key, timeout_s=timeout_s)

        except httpx.TimeoutException as e:
            self._log_failure(base, ProviderErrorClass.TIMEOUT, start)
            raise ProviderError(
                ProviderErrorClass.TIMEOUT,
                "Request timed out",
                provider=provider,
            ) from e

        except httpx.HTTPStatusError as e:
            json_body = self._safe_parse_json(e.response)
            error_class = classify_provider_error(provider, e.response.status_code, json_body, None)
            provider_req_id = e.response.headers.get("x-request-id") or e.response.headers.get(
                "request-id"
            )
            self._log_failure(
                base,
                error_class,
                start,
                status_code=e.response.status_code,
                provider_request_id=provider_req_id,
            )
            raise ProviderError(
                error_class,
                f"Provider returned HTTP {e.response.status_code}",
                provider=provider,
            ) from e

        except httpx.NetworkError as e:
            self._log_failure(base, ProviderErrorClass.PROVIDER_DOWN, start)
            raise ProviderError(
                ProviderErrorClass.PROVIDER_DOWN,
                "Network error",
                provider=provider,
            ) from e

        except ProviderError as e:
            self._log_failure(base, e.error_class, start)
            raise

        except ValueError as e:
            # Non-JSON 2xx body
            self._log_failure(base, ProviderErrorClass.MALFORMED_RESPONSE, start)
            raise ProviderError(
                ProviderErrorClass.MALFORMED_RESPONSE,
                "Provider returned a non-JSON body",
                provider=provider,
            ) from e

        except (AttributeError, KeyError, TypeError) as e:
            # 2xx JSON body in a shape the adapter did not expect
            self._log_failure(base, ProviderErrorClass.MALFORMED_RESPONSE, start)
            raise ProviderError(
                ProviderErrorClass.MALFORMED_RESPONSE,
                f"Provider returned an unexpected body shape: {type(e).__name__}",
                provider=provider,
            ) from e

        except httpx.HTTPError as e:
            self._log_failure(base, ProviderErrorClass.PROVIDER_DOWN, start)
            raise ProviderError(
                ProviderErrorClass.PROVIDER_DOWN,
                f"Unexpected transport error: {type(e).__name__}",
                provider=provider,
            ) from e

        usage = response.usage
        logger.info(
            "llm.request.finished",
            **safe_kv(
                **base,
                outcome="success",
                latency_ms=int((time.monotonic() - start) * 1000),
                tokens_input=usage.prompt_tokens if usage else None,
                tokens_output=usage.completion_tokens if usage else None,
                tokens_total=usage.total_tokens if usage else None,
                response_chars=len(response.text),
                provider_request_id=response.provider_request_id,
            ),
        )
        return response

    def _log_failure(
        self, base: dict, error_class: ProviderErrorClass, start: float, **extra
    ) -> None:
        logger.warning(
            "llm.request.failed",
            **safe_kv(
                **base,
                outcome="error",
                error_class=error_class.value,
                latency_ms=int((time.monotonic() - start) * 1000),
                **extra,
            ),
        )

    def _safe_parse_json(self, response: httpx.Response) -> dict | None:
        """Safely parse JSON from response, returning None on failure."""
        try:
            body = response.json()
        except ValueError:
            return None
        return body if isinstance(body, dict) else None


def create_provider_router(
    client: httpx.AsyncClient, providers: list[str] | None = None
) -> ProviderRouter:
    """Build a router with one adapter per known (or requested) provider.

    Args:
        client: Shared httpx.AsyncClient for connection pooling.
        providers: Provider names to register. Defaults to every known adapter.
    """
    names = providers if providers is not None else list(ADAPTER_CLASSES)
    return ProviderRouter({name: ADAPTER_CLASSES[name](client) for name in names})


def provider_tag(provider: str, model_name: str) -> str:
    """Origin tag stored with templates and ledger rows.

    Examples: "gemini-2.5-flash", "groq-llama-3.1-8b-instant".
    """
    if model_name.startswith(provider):
        return model_name
    return f"{provider}-{model_name}"


def build_provider_specs(settings: Settings) -> list[ProviderSpec]:
    """Resolve the configured provider order into specs.

    Providers without an API key are dropped; order follows PROVIDER_ORDER.
    """
    specs = []
    for name in settings.provider_order_list:
        api_key = settings.api_key_for(name)
        if not api_key:
            continue
        model_name = settings.model_for(name)
        specs.append(
            ProviderSpec(
                provider=name,
                model_name=model_name,
                tag=provider_tag(name, model_name),
                api_key=api_key,
                daily_quota=settings.daily_quota_for(name),
            )
        )
    return specs
