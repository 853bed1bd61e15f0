"""Test helpers for provider scripting and store seeding.

Provides:
- FakeAdapter: an LLMAdapter whose outcomes are scripted per call
- http_error: build the httpx error a real adapter would raise
- spec(): ProviderSpec with realistic tags
- seed_templates / seed_usage: direct inserts with explicit timestamps
"""

import asyncio
import json
from datetime import UTC, datetime

import httpx
from sqlalchemy.orm import Session

from luvv.db.models import AIUsageLog, MessageTemplate, UsageStatus
from luvv.services.gateway import GatewayConfig
from luvv.services.llm import LLMAdapter, LLMRequest, LLMResponse, ProviderSpec, provider_tag

MODELS = {
    "gemini": "gemini-2.5-flash",
    "groq": "llama-3.1-8b-instant",
    "openai": "gpt-4o-mini",
    "anthropic": "claude-3-5-haiku-latest",
}

# No backoff, generous deadline
FAST_CONFIG = GatewayConfig(backoff_base_s=0.0, deadline_s=5.0, timeout_s=1.0)

HANG = object()


def spec(provider: str, daily_quota: int | None = None) -> ProviderSpec:
    """ProviderSpec with the default model and a dummy key."""
    model_name = MODELS[provider]
    return ProviderSpec(
        provider=provider,
        model_name=model_name,
        tag=provider_tag(provider, model_name),
        api_key=f"test-{provider}-key",
        daily_quota=daily_quota,
    )


def messages_json(*messages: str) -> str:
    return json.dumps({"messages": list(messages)})


def http_error(status_code: int, body: dict | None = None) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://provider.test/v1/generate")
    response = httpx.Response(status_code, json=body or {}, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


class FakeAdapter(LLMAdapter):
    """Adapter returning scripted outcomes, one per call.

    Each outcome is a str (response text), an exception (raised), or HANG
    (sleeps until cancelled). The last outcome repeats once the script runs out.
    """

    def __init__(self, name: str, *outcomes):
        super().__init__(client=None)  # type: ignore[arg-type]
        self.name = name
        self._outcomes = list(outcomes)
        self.calls: list[LLMRequest] = []

    async def generate(self, req: LLMRequest, *, api_key: str, timeout_s: float) -> LLMResponse:
        self.calls.append(req)
        index = min(len(self.calls), len(self._outcomes)) - 1
        outcome = self._outcomes[index]

        if outcome is HANG:
            await asyncio.sleep(60)
        if isinstance(outcome, BaseException):
            raise outcome

        return LLMResponse(text=outcome, usage=None, provider_request_id=None)


def seed_templates(
    db: Session,
    relationship: str,
    tone: str,
    texts: list[str],
    provider: str = "gemini-2.5-flash",
    created_at: datetime | None = None,
) -> None:
    for text in texts:
        row = MessageTemplate(
            relationship=relationship, tone=tone, message_text=text, provider=provider
        )
        if created_at is not None:
            row.created_at = created_at
        db.add(row)
    db.commit()


def seed_usage(
    db: Session,
    model_name: str,
    status: UsageStatus,
    count: int = 1,
    created_at: datetime | None = None,
) -> None:
    for _ in range(count):
        db.add(
            AIUsageLog(
                model_name=model_name,
                status=status,
                created_at=created_at or datetime.now(UTC),
            )
        )
    db.commit()
