"""Gemini LLM adapter implementation.

- Endpoint: POST https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent

Auth:
- Header: x-goog-api-key: <key>
- NEVER put key in query param

Turn conversion:
- System turn → systemInstruction.parts[0].text
- "assistant" role → "model" role in Gemini
- Each turn's content → parts: [{"text": "..."}]

Request body:
{
  "contents": [{"role": "user", "parts": [{"text": "..."}]}],
  "systemInstruction": {"parts": [{"text": "<system_prompt>"}]},
  "generationConfig": {
    "maxOutputTokens": 1024,
    "temperature": 0.9,
    "responseMimeType": "application/json"
  }
}

Response:
{
  "candidates": [{"content": {"parts": [{"text": "<output_text>"}]}}],
  "usageMetadata": {"promptTokenCount": 100, "candidatesTokenCount": 50, "totalTokenCount": 150}
}

- text = concatenate candidates[0].content.parts[].text
- provider_request_id = None (Gemini doesn't return one)
"""

from luvv.services.llm.adapter import LLMAdapter
from luvv.services.llm.errors import ProviderError, ProviderErrorClass
from luvv.services.llm.types import LLMRequest, LLMResponse, LLMUsage, Turn

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiAdapter(LLMAdapter):
    """Google Gemini API adapter.

    Handles conversion between Turn objects and Gemini content format,
    including role mapping (assistant → model) and system instruction extraction.
    """

    name = "gemini"

    async def generate(
        self,
        req: LLMRequest,
        *,
        api_key: str,
        timeout_s: float,
    ) -> LLMResponse:
        """Non-streaming content generation."""
        url = f"{GEMINI_BASE_URL}/{req.model_name}:generateContent"

        response = await self._client.post(
            url,
            headers=self._build_headers(api_key),
            json=self._build_request_body(req),
            timeout=self._timeout(timeout_s),
        )
        response.raise_for_status()

        return self._parse_response(self._json_object(response))

    def _build_headers(self, api_key: str) -> dict[str, str]:
        """Build request headers.

        Note: API key goes in header, NEVER in query param.
        """
        return {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
        }

    def _build_request_body(self, req: LLMRequest) -> dict:
        """Build request body from LLMRequest.

        Extracts system turn to systemInstruction and maps roles.
        """
        system_prompt = None
        contents = []

        for turn in req.messages:
            if turn.role == "system":
                system_prompt = turn.content
            else:
                contents.append(self._turn_to_content(turn))

        body: dict = {
            "contents": contents,
            "generationConfig": {
                "maxOutputTokens": req.max_tokens,
            },
        }

        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        if req.temperature is not None:
            body["generationConfig"]["temperature"] = req.temperature

        if req.json_output:
            body["generationConfig"]["responseMimeType"] = "application/json"

        return body

    def _turn_to_content(self, turn: Turn) -> dict:
        role = "model" if turn.role == "assistant" else turn.role
        return {
            "role": role,
            "parts": [{"text": turn.content}],
        }

    def _parse_response(self, data: dict) -> LLMResponse:
        candidates = data.get("candidates")
        if not (isinstance(candidates, list) and candidates and isinstance(candidates[0], dict)):
            raise ProviderError(
                ProviderErrorClass.MALFORMED_RESPONSE,
                "Gemini response missing candidates",
                provider=self.name,
            )

        content = candidates[0].get("content") or {}
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list):
            parts = []
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))

        if not text.strip():
            raise ProviderError(
                ProviderErrorClass.MALFORMED_RESPONSE,
                "Gemini response has no text",
                provider=self.name,
            )

        usage = None
        usage_metadata = data.get("usageMetadata")
        if isinstance(usage_metadata, dict):
            usage = LLMUsage(
                prompt_tokens=usage_metadata.get("promptTokenCount"),
                completion_tokens=usage_metadata.get("candidatesTokenCount"),
                total_tokens=usage_metadata.get("totalTokenCount"),
            )

        return LLMResponse(text=text, usage=usage, provider_request_id=None)
