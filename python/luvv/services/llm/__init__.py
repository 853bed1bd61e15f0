"""LLM adapter layer for provider-agnostic message generation.

This module provides a unified interface for calling Gemini, Groq, OpenAI
and Anthropic models. It includes:

- Provider adapters with async support
- Error classification and normalization
- Prompt rendering (provider-agnostic)

Usage:
    from luvv.services.llm import LLMRequest, create_provider_router, build_generation_prompt

    router = create_provider_router(httpx_client)
    request = LLMRequest(
        model_name="gemini-2.5-flash",
        messages=build_generation_prompt(Relationship.spouse, Tone.romantic),
        max_tokens=1024,
    )
    response = await router.generate("gemini", request, api_key="...")

Rules:
- Adapters are async using httpx.AsyncClient
- No retries inside adapters
- No DB access inside adapters
- No logging of request/response bodies
- Raw provider errors bubble up to router for classification
"""

from luvv.services.llm.adapter import LLMAdapter
from luvv.services.llm.errors import (
    NON_RETRYABLE_ERRORS,
    ProviderError,
    ProviderErrorClass,
    classify_provider_error,
)
from luvv.services.llm.prompt import RECIPIENT_TOKEN, SENDER_TOKEN, build_generation_prompt
from luvv.services.llm.router import (
    ProviderRouter,
    build_provider_specs,
    create_provider_router,
    provider_tag,
)
from luvv.services.llm.types import LLMRequest, LLMResponse, LLMUsage, ProviderSpec, Turn

__all__ = [
    # Core types
    "Turn",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    "ProviderSpec",
    # Adapter interface
    "LLMAdapter",
    # Router
    "ProviderRouter",
    "create_provider_router",
    "build_provider_specs",
    "provider_tag",
    # Errors
    "ProviderError",
    "ProviderErrorClass",
    "NON_RETRYABLE_ERRORS",
    "classify_provider_error",
    # Prompt rendering
    "build_generation_prompt",
    "RECIPIENT_TOKEN",
    "SENDER_TOKEN",
]
