"""OpenAI-compatible chat completion adapters.

OpenAIAdapter talks to api.openai.com; GroqAdapter reuses the same wire format
against Groq's OpenAI-compatible endpoint.

- Endpoint: POST <chat_url>
- Headers: Authorization: Bearer <key>, Content-Type: application/json

Request body:
{
  "model": "<model_name>",
  "messages": [{"role": "system", "content": "..."}, {"role": "user", "content": "..."}],
  "max_tokens": 1024,
  "temperature": 0.9,
  "response_format": {"type": "json_object"}
}

Response:
{
  "id": "chatcmpl-...",
  "choices": [{"message": {"content": "<output_text>"}}],
  "usage": {"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": 150}
}

- text = choices[0].message.content
- provider_request_id = response header x-request-id or body id
"""

import httpx

from luvv.services.llm.adapter import LLMAdapter
from luvv.services.llm.errors import ProviderError, ProviderErrorClass
from luvv.services.llm.types import LLMRequest, LLMResponse, LLMUsage, Turn

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
GROQ_CHAT_URL = "https://api.groq.com/openai/v1/chat/completions"


class OpenAIAdapter(LLMAdapter):
    """OpenAI API adapter for chat completions."""

    name = "openai"
    chat_url = OPENAI_CHAT_URL

    async def generate(
        self,
        req: LLMRequest,
        *,
        api_key: str,
        timeout_s: float,
    ) -> LLMResponse:
        """Non-streaming chat completion."""
        response = await self._client.post(
            self.chat_url,
            headers=self._build_headers(api_key),
            json=self._build_request_body(req),
            timeout=self._timeout(timeout_s),
        )
        response.raise_for_status()

        return self._parse_response(self._json_object(response), response.headers)

    def _build_headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

    def _build_request_body(self, req: LLMRequest) -> dict:
        body: dict = {
            "model": req.model_name,
            "messages": [self._turn_to_message(turn) for turn in req.messages],
            "max_tokens": req.max_tokens,
            "stream": False,
        }

        if req.temperature is not None:
            body["temperature"] = req.temperature

        if req.json_output:
            body["response_format"] = {"type": "json_object"}

        return body

    def _turn_to_message(self, turn: Turn) -> dict[str, str]:
        """Convert Turn to OpenAI message format.

        OpenAI uses the same role names as our Turn type.
        """
        return {
            "role": turn.role,
            "content": turn.content,
        }

    def _parse_response(self, data: dict, headers: httpx.Headers) -> LLMResponse:
        choices = data.get("choices")
        if not (isinstance(choices, list) and choices and isinstance(choices[0], dict)):
            raise ProviderError(
                ProviderErrorClass.MALFORMED_RESPONSE,
                f"{self.name} response missing choices",
                provider=self.name,
            )

        message = choices[0].get("message") or {}
        text = (message.get("content") if isinstance(message, dict) else None) or ""
        if not isinstance(text, str) or not text.strip():
            raise ProviderError(
                ProviderErrorClass.MALFORMED_RESPONSE,
                f"{self.name} response has no text",
                provider=self.name,
            )

        usage = None
        usage_data = data.get("usage")
        if isinstance(usage_data, dict):
            usage = LLMUsage(
                prompt_tokens=usage_data.get("prompt_tokens"),
                completion_tokens=usage_data.get("completion_tokens"),
                total_tokens=usage_data.get("total_tokens"),
            )

        provider_request_id = headers.get("x-request-id") or data.get("id")

        return LLMResponse(
            text=text,
            usage=usage,
            provider_request_id=provider_request_id,
        )


class GroqAdapter(OpenAIAdapter):
    """Groq adapter (OpenAI-compatible chat completions endpoint)."""

    name = "groq"
    chat_url = GROQ_CHAT_URL
