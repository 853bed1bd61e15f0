"""Shared type definitions for the LLM adapter layer.

- Turn: Provider-agnostic conversation turn
- LLMRequest: Request to LLM adapter
- LLMUsage: Token usage from provider response
- LLMResponse: Complete response from a provider call
- ProviderSpec: One configured upstream (adapter name, model, tag, key, quota)
"""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class Turn:
    """Provider-agnostic conversation turn.

    Attributes:
        role: One of "system", "user", or "assistant"
        content: The text content of the turn
    """

    role: Literal["system", "user", "assistant"]
    content: str


@dataclass(frozen=True)
class LLMUsage:
    """Token usage from provider response.

    All fields are optional as not all providers return all metrics.
    """

    prompt_tokens: int | None
    completion_tokens: int | None
    total_tokens: int | None


@dataclass(frozen=True)
class LLMRequest:
    """Request to LLM adapter.

    Attributes:
        model_name: The model identifier (e.g., "gemini-2.5-flash", "llama-3.1-8b-instant")
        messages: List of Turn objects (system turn first if present)
        max_tokens: Maximum tokens in the completion
        temperature: Sampling temperature, None uses provider default
        json_output: Ask the provider for a JSON body when it supports a JSON mode
    """

    model_name: str
    messages: list[Turn]
    max_tokens: int
    temperature: float | None = None
    json_output: bool = False


@dataclass(frozen=True)
class LLMResponse:
    """Complete response from a provider call.

    Attributes:
        text: The raw generated text, not yet normalized
        usage: Token usage information (may be None if provider doesn't return it)
        provider_request_id: Provider's request ID for debugging (may be None)
    """

    text: str
    usage: LLMUsage | None
    provider_request_id: str | None


@dataclass(frozen=True)
class ProviderSpec:
    """One configured upstream, in the order the gateway should try it.

    Attributes:
        provider: Adapter name registered in the router ("gemini", "groq", ...)
        model_name: Upstream model identifier
        tag: Origin tag written to message_library.provider and ai_usage_logs.model_name
        api_key: Credential for the provider
        daily_quota: Daily success ceiling; None means unlimited
    """

    provider: str
    model_name: str
    tag: str
    api_key: str
    daily_quota: int | None = None
