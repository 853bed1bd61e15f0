"""Anthropic LLM adapter implementation.

- Endpoint: POST https://api.anthropic.com/v1/messages
- Headers: x-api-key, anthropic-version: 2023-06-01, Content-Type: application/json

Turn conversion:
- System turn → top-level "system" field
- User/assistant turns → messages[]

Anthropic has no JSON mode; the prompt itself asks for JSON and the
normalizer copes with prose.

Response:
{
  "id": "msg_...",
  "content": [{"type": "text", "text": "<output_text>"}],
  "usage": {"input_tokens": 100, "output_tokens": 50}
}

- text = concatenate content[].text where type == "text"
- provider_request_id = body id
"""

from luvv.services.llm.adapter import LLMAdapter
from luvv.services.llm.errors import ProviderError, ProviderErrorClass
from luvv.services.llm.types import LLMRequest, LLMResponse, LLMUsage, Turn

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_API_VERSION = "2023-06-01"


class AnthropicAdapter(LLMAdapter):
    """Anthropic Messages API adapter."""

    name = "anthropic"

    async def generate(
        self,
        req: LLMRequest,
        *,
        api_key: str,
        timeout_s: float,
    ) -> LLMResponse:
        """Non-streaming message creation."""
        response = await self._client.post(
            ANTHROPIC_MESSAGES_URL,
            headers=self._build_headers(api_key),
            json=self._build_request_body(req),
            timeout=self._timeout(timeout_s),
        )
        response.raise_for_status()

        return self._parse_response(self._json_object(response))

    def _build_headers(self, api_key: str) -> dict[str, str]:
        return {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_API_VERSION,
            "Content-Type": "application/json",
        }

    def _build_request_body(self, req: LLMRequest) -> dict:
        """Build request body from LLMRequest.

        Extracts system turn to separate field.
        """
        system_prompt = None
        messages = []

        for turn in req.messages:
            if turn.role == "system":
                system_prompt = turn.content
            else:
                messages.append(self._turn_to_message(turn))

        body: dict = {
            "model": req.model_name,
            "max_tokens": req.max_tokens,
            "messages": messages,
        }

        if system_prompt:
            body["system"] = system_prompt

        if req.temperature is not None:
            body["temperature"] = req.temperature

        return body

    def _turn_to_message(self, turn: Turn) -> dict[str, str]:
        return {
            "role": turn.role,
            "content": turn.content,
        }

    def _parse_response(self, data: dict) -> LLMResponse:
        content_blocks = data.get("content") or []
        if not isinstance(content_blocks, list):
            content_blocks = []
        text = "".join(
            block.get("text", "")
            for block in content_blocks
            if isinstance(block, dict) and block.get("type") == "text"
        )

        if not text.strip():
            raise ProviderError(
                ProviderErrorClass.MALFORMED_RESPONSE,
                "Anthropic response has no text blocks",
                provider=self.name,
            )

        # Anthropic uses input_tokens/output_tokens
        usage = None
        usage_data = data.get("usage")
        if isinstance(usage_data, dict):
            input_tokens = usage_data.get("input_tokens")
            output_tokens = usage_data.get("output_tokens")
            total = None
            if input_tokens is not None and output_tokens is not None:
                total = input_tokens + output_tokens

            usage = LLMUsage(
                prompt_tokens=input_tokens,
                completion_tokens=output_tokens,
                total_tokens=total,
            )

        return LLMResponse(
            text=text,
            usage=usage,
            provider_request_id=data.get("id"),
        )
