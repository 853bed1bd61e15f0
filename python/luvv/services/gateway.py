"""Generation gateway - core request flow.

Implements the pipeline behind POST /api/generate-luvv:

Phase 0 - Validate (no DB access):
- All four fields present and non-blank
- relationship and tone in their closed sets

Phase 1 - Cache (read only):
- Up to 3 distinct templates for (relationship, tone)
- At least CACHE_MIN_TEMPLATES hits → answer with provider="cache", no side effects

Phase 2 - Providers (no DB transaction held during calls):
- Policy order: fixed priority, or rotated by the persisted cursor
- Providers at their daily ceiling skipped without a network call
- Up to PROVIDER_MAX_ATTEMPTS attempts with exponential backoff
- Non-retryable errors end a provider's attempts immediately
- First provider yielding ≥1 normalized message wins
- The whole phase runs under GENERATION_DEADLINE_S

Phase 3 - Safety net (read only):
- Scoped (relationship, tone) lookup, then unscoped
- Nothing found → GenerationFailedError

Phase 4 - Persist (after the response, own session):
- AI output stored in template form, tagged with the winning provider
- Ledger rows: success for the winner, error per failed provider,
  fallback for the safety net
- Failures logged, never surfaced

Sync DB access uses run_in_threadpool (starlette) to avoid blocking the event loop.

Invariants:
- Real names never reach a provider and never reach the database
- Exactly one personalization pass per response
- Returned messages are 1-3 distinct strings
"""

import asyncio
from dataclasses import dataclass, field
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool

from luvv.config import Settings
from luvv.db.models import Relationship, Tone, UsageStatus
from luvv.errors import ApiErrorCode, GenerationFailedError, InvalidRequestError
from luvv.logging import get_logger, set_generation_id
from luvv.services.llm.errors import ProviderError, ProviderErrorClass
from luvv.services.llm.prompt import build_generation_prompt
from luvv.services.llm.router import ProviderRouter
from luvv.services.llm.types import LLMRequest, ProviderSpec
from luvv.services.normalizer import MAX_MESSAGES, extract_messages
from luvv.services.personalization import to_personalized, to_template
from luvv.services.redact import hash_text, safe_kv
from luvv.services.templates import (
    PersistenceError,
    find_any_templates,
    find_templates,
    insert_templates,
)
from luvv.services.usage import is_quota_exhausted, next_rotation_offset, record_usage

logger = get_logger(__name__)

CACHE_PROVIDER = "cache"
SAFETY_NET_PROVIDER = "safety-net"

MAX_NAME_LENGTH = 100
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TEMPERATURE = 0.9


@dataclass(frozen=True)
class GenerationRequest:
    """Validated generation request. Build with GenerationRequest.create()."""

    relationship: Relationship
    tone: Tone
    recipient_name: str
    sender_name: str

    @classmethod
    def create(
        cls,
        relationship: str | None,
        tone: str | None,
        recipient_name: str | None,
        sender_name: str | None,
    ) -> "GenerationRequest":
        """Validate raw inputs.

        Raises:
            InvalidRequestError: If a field is missing, blank, too long, or
                relationship/tone is not a known value.
        """
        fields = {
            "relationship": relationship,
            "tone": tone,
            "recipient": recipient_name,
            "sender": sender_name,
        }
        cleaned: dict[str, str] = {}
        for name, value in fields.items():
            if value is None or not str(value).strip():
                raise InvalidRequestError(ApiErrorCode.E_MISSING_FIELD, f"{name} is required")
            cleaned[name] = str(value).strip()

        for name in ("recipient", "sender"):
            if len(cleaned[name]) > MAX_NAME_LENGTH:
                raise InvalidRequestError(
                    ApiErrorCode.E_INVALID_REQUEST,
                    f"{name} must be at most {MAX_NAME_LENGTH} characters",
                )

        try:
            parsed_relationship = Relationship(cleaned["relationship"])
        except ValueError:
            raise InvalidRequestError(
                ApiErrorCode.E_UNKNOWN_RELATIONSHIP,
                f"Unknown relationship: {cleaned['relationship']}",
            ) from None

        try:
            parsed_tone = Tone(cleaned["tone"])
        except ValueError:
            raise InvalidRequestError(
                ApiErrorCode.E_UNKNOWN_TONE, f"Unknown tone: {cleaned['tone']}"
            ) from None

        return cls(
            relationship=parsed_relationship,
            tone=parsed_tone,
            recipient_name=cleaned["recipient"],
            sender_name=cleaned["sender"],
        )


@dataclass(frozen=True)
class UsageEvent:
    """One pending ledger row."""

    model_name: str
    status: UsageStatus


@dataclass
class GenerationResult:
    """Outcome of one gateway run.

    Attributes:
        messages: 1-3 personalized messages returned to the caller
        provider: "cache", a provider tag, or "safety-net"
        templates: The same messages in template form (what gets persisted)
        usage_events: Ledger rows to write after the response
    """

    messages: list[str]
    provider: str
    templates: list[str] = field(default_factory=list)
    usage_events: list[UsageEvent] = field(default_factory=list)

    @property
    def is_ai_generated(self) -> bool:
        return self.provider not in (CACHE_PROVIDER, SAFETY_NET_PROVIDER)


@dataclass(frozen=True)
class GatewayConfig:
    """Retry, timeout and cache limits for one gateway."""

    max_attempts: int = 2
    backoff_base_s: float = 0.5
    timeout_s: float = 15.0
    deadline_s: float = 40.0
    cache_min_templates: int = 3
    policy: str = "priority"
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float | None = DEFAULT_TEMPERATURE

    @classmethod
    def from_settings(cls, settings: Settings) -> "GatewayConfig":
        return cls(
            max_attempts=settings.provider_max_attempts,
            backoff_base_s=settings.provider_backoff_base_s,
            timeout_s=settings.provider_timeout_s,
            deadline_s=settings.generation_deadline_s,
            cache_min_templates=settings.cache_min_templates,
            policy=settings.provider_policy,
        )


class GenerationGateway:
    """Orchestrates cache, providers, safety net for one request at a time.

    The gateway reads through `db` but writes nothing on the success path;
    persistence is handed back to the caller via persist_generation().
    """

    def __init__(
        self,
        db: Session,
        router: ProviderRouter,
        providers: list[ProviderSpec],
        config: GatewayConfig | None = None,
    ):
        self.db = db
        self.router = router
        self.providers = list(providers)
        self.config = config or GatewayConfig()

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Produce 1-3 personalized messages for a validated request.

        Raises:
            GenerationFailedError: Cache, every provider and the safety net
                were all exhausted.
        """
        set_generation_id(str(uuid4()))
        scope = {"relationship": request.relationship.value, "tone": request.tone.value}

        cached = await run_in_threadpool(
            find_templates,
            self.db,
            request.relationship.value,
            request.tone.value,
            limit=MAX_MESSAGES,
        )
        if len(cached) >= self.config.cache_min_templates:
            logger.info("generation.cache.hit", **safe_kv(**scope, templates_count=len(cached)))
            return self._result(request, cached, CACHE_PROVIDER)

        logger.info("generation.cache.miss", **safe_kv(**scope, templates_count=len(cached)))

        usage_events: list[UsageEvent] = []
        try:
            winner = await asyncio.wait_for(
                self._run_providers(request, usage_events),
                timeout=self.config.deadline_s,
            )
        except TimeoutError:
            logger.warning(
                "generation.deadline.exceeded",
                **safe_kv(**scope, deadline_s=self.config.deadline_s),
            )
            winner = None

        if winner is not None:
            spec, messages = winner
            templates = to_template(messages, request.recipient_name, request.sender_name)
            return self._result(request, templates, spec.tag, usage_events)

        reserve = await run_in_threadpool(
            find_templates,
            self.db,
            request.relationship.value,
            request.tone.value,
            limit=MAX_MESSAGES,
        )
        scoped = bool(reserve)
        if not reserve:
            reserve = await run_in_threadpool(find_any_templates, self.db, limit=MAX_MESSAGES)

        if not reserve:
            logger.error("generation.failed", **safe_kv(**scope, providers_tried=len(usage_events)))
            await run_in_threadpool(self._record_events, usage_events)
            raise GenerationFailedError()

        logger.info(
            "generation.safety_net.used",
            **safe_kv(**scope, scoped=scoped, templates_count=len(reserve)),
        )
        usage_events.append(UsageEvent(SAFETY_NET_PROVIDER, UsageStatus.fallback))
        return self._result(request, reserve, SAFETY_NET_PROVIDER, usage_events)

    async def _ordered_providers(self) -> list[ProviderSpec]:
        specs = self.providers
        if self.config.policy == "round_robin" and len(specs) > 1:
            offset = await run_in_threadpool(next_rotation_offset, self.db, len(specs))
            specs = specs[offset:] + specs[:offset]
        return specs

    async def _run_providers(
        self, request: GenerationRequest, usage_events: list[UsageEvent]
    ) -> tuple[ProviderSpec, list[str]] | None:
        for spec in await self._ordered_providers():
            if not self.router.is_provider_available(spec.provider):
                logger.warning("generation.provider.unavailable", provider=spec.provider)
                continue

            if await run_in_threadpool(is_quota_exhausted, self.db, spec.tag, spec.daily_quota):
                logger.info(
                    "generation.provider.quota_exhausted",
                    provider=spec.provider,
                    model_tag=spec.tag,
                    daily_quota=spec.daily_quota,
                )
                continue

            try:
                messages = await self._try_provider(spec, request)
            except asyncio.CancelledError:
                usage_events.append(UsageEvent(spec.tag, UsageStatus.error))
                raise

            if messages:
                logger.info(
                    "generation.provider.succeeded",
                    provider=spec.provider,
                    model_tag=spec.tag,
                    messages_count=len(messages),
                )
                usage_events.append(UsageEvent(spec.tag, UsageStatus.success))
                return spec, messages

            usage_events.append(UsageEvent(spec.tag, UsageStatus.error))

        return None

    async def _try_provider(self, spec: ProviderSpec, request: GenerationRequest) -> list[str]:
        """Call one provider with bounded retries; return normalized messages or []."""
        llm_request = LLMRequest(
            model_name=spec.model_name,
            messages=build_generation_prompt(request.relationship, request.tone),
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            json_output=True,
        )

        for attempt in range(1, self.config.max_attempts + 1):
            try:
                response = await self.router.generate(
                    spec.provider,
                    llm_request,
                    spec.api_key,
                    timeout_s=self.config.timeout_s,
                    attempt=attempt,
                )
            except ProviderError as e:
                if not e.retryable or attempt >= self.config.max_attempts:
                    logger.warning(
                        "generation.provider.exhausted",
                        provider=spec.provider,
                        error_class=e.error_class.value,
                        attempts=attempt,
                    )
                    return []
                delay = self.config.backoff_base_s * 2 ** (attempt - 1)
                logger.info(
                    "generation.provider.retrying",
                    provider=spec.provider,
                    error_class=e.error_class.value,
                    attempt=attempt,
                    backoff_s=delay,
                )
                await asyncio.sleep(delay)
                continue

            messages = extract_messages(response.text)
            if not messages:
                logger.warning(
                    "generation.provider.empty_result",
                    provider=spec.provider,
                    error_class=ProviderErrorClass.EMPTY_RESULT.value,
                    response_chars=len(response.text),
                    response_sha256=hash_text(response.text),
                )
            return messages

        return []

    def _result(
        self,
        request: GenerationRequest,
        templates: list[str],
        provider: str,
        usage_events: list[UsageEvent] | None = None,
    ) -> GenerationResult:
        templates = templates[:MAX_MESSAGES]
        return GenerationResult(
            messages=to_personalized(templates, request.recipient_name, request.sender_name),
            provider=provider,
            templates=templates,
            usage_events=list(usage_events or []),
        )

    def _record_events(self, usage_events: list[UsageEvent]) -> None:
        for event in usage_events:
            try:
                record_usage(self.db, event.model_name, event.status)
            except PersistenceError as e:
                logger.error("generation.persist.failed", target="ai_usage_logs", error=str(e))


def persist_generation(
    session_factory: sessionmaker[Session],
    request: GenerationRequest,
    result: GenerationResult,
) -> None:
    """Write templates and ledger rows for a finished generation.

    Runs after the response is sent, with its own session. Never raises
    PersistenceError; failures are logged.
    """
    if result.provider == CACHE_PROVIDER:
        return

    with session_factory() as db:
        if result.is_ai_generated:
            try:
                inserted = insert_templates(
                    db,
                    relationship=request.relationship.value,
                    tone=request.tone.value,
                    messages=result.templates,
                    provider=result.provider,
                )
                logger.info(
                    "generation.persist.templates",
                    model_tag=result.provider,
                    templates_count=inserted,
                )
            except PersistenceError as e:
                logger.error("generation.persist.failed", target="message_library", error=str(e))

        for event in result.usage_events:
            try:
                record_usage(db, event.model_name, event.status)
            except PersistenceError as e:
                logger.error("generation.persist.failed", target="ai_usage_logs", error=str(e))
