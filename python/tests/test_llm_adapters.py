"""Tests for the LLM adapter layer.

Coverage per provider:
- Happy path: text, usage and request id parsed
- Wire format: auth header, system turn placement, JSON mode
- 2xx without usable text, or not shaped as expected → ProviderError(MALFORMED_RESPONSE)
- Non-2xx → raw httpx.HTTPStatusError from the adapter

Router coverage:
- HTTP status, timeout, network and decode failures normalized to ProviderErrorClass
- Unknown provider → MODEL_NOT_AVAILABLE

Explicitly Forbidden:
- Live provider calls
- Real API keys anywhere in test code

These tests use respx to mock HTTP and do not touch the database.
"""

import json
from pathlib import Path

import httpx
import pytest
import respx

from luvv.config import Settings
from luvv.services.llm import (
    LLMRequest,
    ProviderError,
    ProviderErrorClass,
    Turn,
    build_provider_specs,
    classify_provider_error,
    create_provider_router,
    provider_tag,
)
from luvv.services.llm.anthropic_adapter import ANTHROPIC_MESSAGES_URL, AnthropicAdapter
from luvv.services.llm.gemini_adapter import GEMINI_BASE_URL, GeminiAdapter
from luvv.services.llm.openai_adapter import (
    GROQ_CHAT_URL,
    OPENAI_CHAT_URL,
    GroqAdapter,
    OpenAIAdapter,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "llm"

GEMINI_URL = f"{GEMINI_BASE_URL}/gemini-2.5-flash:generateContent"


def load_fixture(provider: str, filename: str = "success.json") -> dict:
    return json.loads((FIXTURES_DIR / provider / filename).read_text())


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def httpx_client():
    """Create an httpx AsyncClient for testing."""
    return httpx.AsyncClient()


@pytest.fixture
def llm_request():
    return LLMRequest(
        model_name="gemini-2.5-flash",
        messages=[
            Turn(role="system", content="You write greeting cards."),
            Turn(role="user", content="Write three messages."),
        ],
        max_tokens=512,
        temperature=0.9,
        json_output=True,
    )


# =============================================================================
# Gemini Adapter Tests
# =============================================================================


class TestGeminiAdapter:
    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_success(self, httpx_client, llm_request):
        route = respx.post(GEMINI_URL).respond(200, json=load_fixture("gemini"))

        adapter = GeminiAdapter(httpx_client)
        response = await adapter.generate(llm_request, api_key="test-key", timeout_s=10)

        assert '"messages"' in response.text
        assert response.usage is not None
        assert response.usage.total_tokens == 215
        assert response.provider_request_id is None

        sent = route.calls.last.request
        assert sent.headers["x-goog-api-key"] == "test-key"
        assert "key=" not in str(sent.url)

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_request_body(self, httpx_client, llm_request):
        route = respx.post(GEMINI_URL).respond(200, json=load_fixture("gemini"))

        await GeminiAdapter(httpx_client).generate(llm_request, api_key="k", timeout_s=10)

        body = json.loads(route.calls.last.request.content)
        assert body["systemInstruction"] == {"parts": [{"text": "You write greeting cards."}]}
        assert body["contents"] == [{"role": "user", "parts": [{"text": "Write three messages."}]}]
        assert body["generationConfig"]["maxOutputTokens"] == 512
        assert body["generationConfig"]["responseMimeType"] == "application/json"

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_missing_candidates(self, httpx_client, llm_request):
        respx.post(GEMINI_URL).respond(200, json={"candidates": []})

        with pytest.raises(ProviderError) as exc_info:
            await GeminiAdapter(httpx_client).generate(llm_request, api_key="k", timeout_s=10)

        assert exc_info.value.error_class == ProviderErrorClass.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_blank_text(self, httpx_client, llm_request):
        respx.post(GEMINI_URL).respond(
            200, json={"candidates": [{"content": {"parts": [{"text": "  "}]}}]}
        )

        with pytest.raises(ProviderError) as exc_info:
            await GeminiAdapter(httpx_client).generate(llm_request, api_key="k", timeout_s=10)

        assert exc_info.value.error_class == ProviderErrorClass.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            [],
            "oops",
            {"candidates": ["x"]},
            {"candidates": "x"},
            {"candidates": [{"content": "x"}]},
        ],
    )
    @respx.mock
    async def test_gemini_unexpected_body_shape(self, httpx_client, llm_request, body):
        respx.post(GEMINI_URL).respond(200, json=body)

        with pytest.raises(ProviderError) as exc_info:
            await GeminiAdapter(httpx_client).generate(llm_request, api_key="k", timeout_s=10)

        assert exc_info.value.error_class == ProviderErrorClass.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    @respx.mock
    async def test_gemini_http_error_bubbles(self, httpx_client, llm_request):
        respx.post(GEMINI_URL).respond(429, json={"error": {"status": "RESOURCE_EXHAUSTED"}})

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await GeminiAdapter(httpx_client).generate(llm_request, api_key="k", timeout_s=10)

        assert exc_info.value.response.status_code == 429


# =============================================================================
# OpenAI-compatible Adapter Tests
# =============================================================================


class TestOpenAICompatibleAdapters:
    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_success(self, httpx_client, llm_request):
        route = respx.post(OPENAI_CHAT_URL).respond(
            200, json=load_fixture("openai"), headers={"x-request-id": "req-test-123"}
        )

        response = await OpenAIAdapter(httpx_client).generate(
            llm_request, api_key="sk-test", timeout_s=10
        )

        assert "[RECIPIENT]" in response.text
        assert response.usage is not None
        assert response.usage.prompt_tokens == 110
        assert response.provider_request_id == "req-test-123"

        sent = route.calls.last.request
        assert sent.headers["authorization"] == "Bearer sk-test"
        body = json.loads(sent.content)
        assert body["messages"][0] == {"role": "system", "content": "You write greeting cards."}
        assert body["response_format"] == {"type": "json_object"}
        assert body["stream"] is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_request_id_from_body(self, httpx_client, llm_request):
        respx.post(OPENAI_CHAT_URL).respond(200, json=load_fixture("openai"))

        response = await OpenAIAdapter(httpx_client).generate(
            llm_request, api_key="sk-test", timeout_s=10
        )

        assert response.provider_request_id == "chatcmpl-test-123"

    @pytest.mark.asyncio
    @respx.mock
    async def test_groq_uses_groq_endpoint(self, httpx_client, llm_request):
        route = respx.post(GROQ_CHAT_URL).respond(200, json=load_fixture("openai"))

        adapter = GroqAdapter(httpx_client)
        response = await adapter.generate(llm_request, api_key="gsk-test", timeout_s=10)

        assert adapter.name == "groq"
        assert route.called
        assert route.calls.last.request.headers["authorization"] == "Bearer gsk-test"
        assert "[SENDER]" in response.text

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_no_json_mode_when_not_requested(self, httpx_client):
        route = respx.post(OPENAI_CHAT_URL).respond(200, json=load_fixture("openai"))
        req = LLMRequest(
            model_name="gpt-4o-mini",
            messages=[Turn(role="user", content="hi")],
            max_tokens=10,
        )

        await OpenAIAdapter(httpx_client).generate(req, api_key="sk-test", timeout_s=10)

        body = json.loads(route.calls.last.request.content)
        assert "response_format" not in body
        assert "temperature" not in body

    @pytest.mark.asyncio
    @respx.mock
    async def test_openai_null_content(self, httpx_client, llm_request):
        respx.post(OPENAI_CHAT_URL).respond(
            200, json={"choices": [{"message": {"role": "assistant", "content": None}}]}
        )

        with pytest.raises(ProviderError) as exc_info:
            await OpenAIAdapter(httpx_client).generate(llm_request, api_key="k", timeout_s=10)

        assert exc_info.value.error_class == ProviderErrorClass.MALFORMED_RESPONSE
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [["a"], 42, {"choices": ["x"]}, {"choices": [{"message": "x"}]}],
    )
    @respx.mock
    async def test_openai_unexpected_body_shape(self, httpx_client, llm_request, body):
        respx.post(OPENAI_CHAT_URL).respond(200, json=body)

        with pytest.raises(ProviderError) as exc_info:
            await OpenAIAdapter(httpx_client).generate(llm_request, api_key="k", timeout_s=10)

        assert exc_info.value.error_class == ProviderErrorClass.MALFORMED_RESPONSE


# =============================================================================
# Anthropic Adapter Tests
# =============================================================================


class TestAnthropicAdapter:
    @pytest.mark.asyncio
    @respx.mock
    async def test_anthropic_success(self, httpx_client, llm_request):
        route = respx.post(ANTHROPIC_MESSAGES_URL).respond(200, json=load_fixture("anthropic"))

        response = await AnthropicAdapter(httpx_client).generate(
            llm_request, api_key="sk-ant-test", timeout_s=10
        )

        assert "[RECIPIENT]" in response.text
        assert response.usage is not None
        assert response.usage.total_tokens == 140
        assert response.provider_request_id == "msg_test_123"

        sent = route.calls.last.request
        assert sent.headers["x-api-key"] == "sk-ant-test"
        assert sent.headers["anthropic-version"] == "2023-06-01"
        body = json.loads(sent.content)
        assert body["system"] == "You write greeting cards."
        assert body["messages"] == [{"role": "user", "content": "Write three messages."}]

    @pytest.mark.asyncio
    @respx.mock
    async def test_anthropic_no_text_blocks(self, httpx_client, llm_request):
        respx.post(ANTHROPIC_MESSAGES_URL).respond(
            200, json={"id": "msg_1", "content": [{"type": "tool_use", "id": "t"}]}
        )

        with pytest.raises(ProviderError) as exc_info:
            await AnthropicAdapter(httpx_client).generate(llm_request, api_key="k", timeout_s=10)

        assert exc_info.value.error_class == ProviderErrorClass.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [[], "oops", {"content": "text"}])
    @respx.mock
    async def test_anthropic_unexpected_body_shape(self, httpx_client, llm_request, body):
        respx.post(ANTHROPIC_MESSAGES_URL).respond(200, json=body)

        with pytest.raises(ProviderError) as exc_info:
            await AnthropicAdapter(httpx_client).generate(llm_request, api_key="k", timeout_s=10)

        assert exc_info.value.error_class == ProviderErrorClass.MALFORMED_RESPONSE


# =============================================================================
# Router Tests
# =============================================================================


class TestProviderRouter:
    @pytest.mark.asyncio
    @respx.mock
    async def test_router_success(self, httpx_client, llm_request):
        respx.post(GEMINI_URL).respond(200, json=load_fixture("gemini"))
        router = create_provider_router(httpx_client)

        response = await router.generate("gemini", llm_request, "test-key")

        assert '"messages"' in response.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status_code", "expected"),
        [
            (401, ProviderErrorClass.INVALID_KEY),
            (403, ProviderErrorClass.INVALID_KEY),
            (404, ProviderErrorClass.MODEL_NOT_AVAILABLE),
            (429, ProviderErrorClass.RATE_LIMIT),
            (500, ProviderErrorClass.PROVIDER_DOWN),
            (503, ProviderErrorClass.PROVIDER_DOWN),
        ],
    )
    @respx.mock
    async def test_router_classifies_http_status(
        self, httpx_client, llm_request, status_code, expected
    ):
        respx.post(GROQ_CHAT_URL).respond(status_code, json={"error": {"message": "nope"}})
        router = create_provider_router(httpx_client)

        with pytest.raises(ProviderError) as exc_info:
            await router.generate("groq", llm_request, "k")

        assert exc_info.value.error_class == expected
        assert exc_info.value.provider == "groq"

    @pytest.mark.asyncio
    @respx.mock
    async def test_router_timeout(self, httpx_client, llm_request):
        respx.post(OPENAI_CHAT_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        router = create_provider_router(httpx_client)

        with pytest.raises(ProviderError) as exc_info:
            await router.generate("openai", llm_request, "k")

        assert exc_info.value.error_class == ProviderErrorClass.TIMEOUT

    @pytest.mark.asyncio
    @respx.mock
    async def test_router_network_error(self, httpx_client, llm_request):
        respx.post(ANTHROPIC_MESSAGES_URL).mock(side_effect=httpx.ConnectError("refused"))
        router = create_provider_router(httpx_client)

        with pytest.raises(ProviderError) as exc_info:
            await router.generate("anthropic", llm_request, "k")

        assert exc_info.value.error_class == ProviderErrorClass.PROVIDER_DOWN

    @pytest.mark.asyncio
    @respx.mock
    async def test_router_non_json_body(self, httpx_client, llm_request):
        respx.post(GEMINI_URL).respond(200, text="<html>maintenance</html>")
        router = create_provider_router(httpx_client)

        with pytest.raises(ProviderError) as exc_info:
            await router.generate("gemini", llm_request, "k")

        assert exc_info.value.error_class == ProviderErrorClass.MALFORMED_RESPONSE

    @pytest.mark.asyncio
    async def test_router_unknown_provider(self, httpx_client, llm_request):
        router = create_provider_router(httpx_client, ["gemini"])

        assert not router.is_provider_available("groq")
        with pytest.raises(ProviderError) as exc_info:
            await router.generate("groq", llm_request, "k")

        assert exc_info.value.error_class == ProviderErrorClass.MODEL_NOT_AVAILABLE
        assert not exc_info.value.retryable


# =============================================================================
# Error Classification Tests
# =============================================================================


class TestClassifyProviderError:
    def test_gemini_api_key_invalid_in_400_body(self):
        body = {"error": {"code": 400, "details": [{"reason": "API_KEY_INVALID"}]}}
        assert classify_provider_error("gemini", 400, body, None) == ProviderErrorClass.INVALID_KEY

    def test_gemini_resource_exhausted(self):
        body = {"error": {"status": "RESOURCE_EXHAUSTED"}}
        assert classify_provider_error("gemini", 400, body, None) == ProviderErrorClass.RATE_LIMIT

    def test_openai_model_not_found_400(self):
        body = {"error": {"code": "model_not_found", "message": "The model does not exist"}}
        assert (
            classify_provider_error("openai", 400, body, None)
            == ProviderErrorClass.MODEL_NOT_AVAILABLE
        )

    def test_groq_decommissioned_model(self):
        body = {"error": {"message": "The model `llama-x` does not exist"}}
        assert (
            classify_provider_error("groq", 400, body, None)
            == ProviderErrorClass.MODEL_NOT_AVAILABLE
        )

    def test_anthropic_overloaded_529(self):
        assert classify_provider_error("anthropic", 529, None, None) == ProviderErrorClass.RATE_LIMIT

    def test_no_status_is_provider_down(self):
        assert classify_provider_error("gemini", None, None, None) == ProviderErrorClass.PROVIDER_DOWN

    def test_timeout_exception(self):
        exc = httpx.ReadTimeout("slow")
        assert classify_provider_error("groq", None, None, exc) == ProviderErrorClass.TIMEOUT

    def test_retryable_flags(self):
        assert ProviderError(ProviderErrorClass.RATE_LIMIT, "x").retryable
        assert ProviderError(ProviderErrorClass.TIMEOUT, "x").retryable
        assert not ProviderError(ProviderErrorClass.INVALID_KEY, "x").retryable
        assert not ProviderError(ProviderErrorClass.MODEL_NOT_AVAILABLE, "x").retryable


# =============================================================================
# Provider Spec Tests
# =============================================================================


class TestProviderSpecs:
    def test_provider_tag(self):
        assert provider_tag("gemini", "gemini-2.5-flash") == "gemini-2.5-flash"
        assert provider_tag("groq", "llama-3.1-8b-instant") == "groq-llama-3.1-8b-instant"

    def test_keyless_providers_dropped(self):
        settings = Settings(
            DATABASE_URL="sqlite://",
            LUVV_ENV="test",
            GEMINI_API_KEY="g-key",
            GROQ_API_KEY=None,
            OPENAI_API_KEY="o-key",
            ANTHROPIC_API_KEY=None,
        )

        specs = build_provider_specs(settings)

        assert [s.provider for s in specs] == ["gemini", "openai"]
        assert specs[0].tag == "gemini-2.5-flash"
        assert specs[0].daily_quota == 250
        assert specs[1].daily_quota is None

    def test_order_follows_setting(self):
        settings = Settings(
            DATABASE_URL="sqlite://",
            LUVV_ENV="test",
            GEMINI_API_KEY="g-key",
            GROQ_API_KEY="q-key",
            OPENAI_API_KEY=None,
            ANTHROPIC_API_KEY=None,
            PROVIDER_ORDER="groq,gemini",
        )

        assert [s.provider for s in build_provider_specs(settings)] == ["groq", "gemini"]
