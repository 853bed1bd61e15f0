"""Application settings loaded from environment variables.

Environment Configuration:
    LUVV_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: SQLAlchemy connection string (required)

Provider Configuration:
    GEMINI_API_KEY / GROQ_API_KEY / OPENAI_API_KEY / ANTHROPIC_API_KEY:
        A provider is enabled only when its key is set.
    GEMINI_MODEL / GROQ_MODEL / OPENAI_MODEL / ANTHROPIC_MODEL:
        Upstream model identifiers.
    *_DAILY_QUOTA: Daily success ceiling per provider (unset = unlimited).
    PROVIDER_ORDER: Comma-separated provider names in priority order.
    PROVIDER_POLICY: "priority" (fixed order) or "round_robin" (persisted rotation).

Generation Limits:
    PROVIDER_MAX_ATTEMPTS: Attempts per provider before moving on.
    PROVIDER_BACKOFF_BASE_S: Base delay for exponential backoff between attempts.
    PROVIDER_TIMEOUT_S: Per-attempt HTTP timeout.
    GENERATION_DEADLINE_S: Budget for the whole provider loop.

Note: at least one provider key is required in staging/prod. Local and test
environments may run with none (the gateway then serves cache and safety net only).
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

KNOWN_PROVIDERS = ("gemini", "groq", "openai", "anthropic")
PROVIDER_POLICIES = ("priority", "round_robin")


class Environment(str, Enum):
    """Valid deployment environments."""

    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Application configuration.

    Settings are loaded from environment variables.
    Validation rules:
    - DATABASE_URL is always required
    - PROVIDER_ORDER may only name known providers
    - PROVIDER_POLICY must be "priority" or "round_robin"
    - At least one provider API key is required in staging and prod
    """

    luvv_env: Environment = Field(default=Environment.LOCAL, alias="LUVV_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]

    # Provider credentials and models
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_MODEL")
    gemini_daily_quota: int | None = Field(default=250, alias="GEMINI_DAILY_QUOTA")

    groq_api_key: str | None = Field(default=None, alias="GROQ_API_KEY")
    groq_model: str = Field(default="llama-3.1-8b-instant", alias="GROQ_MODEL")
    groq_daily_quota: int | None = Field(default=None, alias="GROQ_DAILY_QUOTA")

    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_daily_quota: int | None = Field(default=None, alias="OPENAI_DAILY_QUOTA")

    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    anthropic_model: str = Field(default="claude-3-5-haiku-latest", alias="ANTHROPIC_MODEL")
    anthropic_daily_quota: int | None = Field(default=None, alias="ANTHROPIC_DAILY_QUOTA")

    # Provider selection policy
    provider_order: str = Field(default="gemini,groq,openai,anthropic", alias="PROVIDER_ORDER")
    provider_policy: str = Field(default="priority", alias="PROVIDER_POLICY")

    # Retry / timeout budget
    provider_max_attempts: int = Field(default=2, ge=1, alias="PROVIDER_MAX_ATTEMPTS")
    provider_backoff_base_s: float = Field(default=0.5, ge=0, alias="PROVIDER_BACKOFF_BASE_S")
    provider_timeout_s: float = Field(default=15.0, gt=0, alias="PROVIDER_TIMEOUT_S")
    generation_deadline_s: float = Field(default=40.0, gt=0, alias="GENERATION_DEADLINE_S")

    # Cache
    cache_min_templates: int = Field(default=3, ge=1, le=3, alias="CACHE_MIN_TEMPLATES")

    # HTTP
    cors_allowed_origins: str = Field(default="*", alias="CORS_ALLOWED_ORIGINS")
    log_json: bool = Field(default=True, alias="LOG_JSON")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_provider_settings(self) -> "Settings":
        """Reject unknown providers/policies and keyless deployments."""
        unknown = [name for name in self.provider_order_list if name not in KNOWN_PROVIDERS]
        if unknown:
            raise ValueError(
                f"Unknown providers in PROVIDER_ORDER: {', '.join(unknown)}. "
                f"Known providers: {', '.join(KNOWN_PROVIDERS)}"
            )

        if self.provider_policy not in PROVIDER_POLICIES:
            raise ValueError(
                f"PROVIDER_POLICY must be one of {', '.join(PROVIDER_POLICIES)}, "
                f"got {self.provider_policy!r}"
            )

        if self.luvv_env in (Environment.STAGING, Environment.PROD):
            if not any(self.api_key_for(name) for name in self.provider_order_list):
                raise ValueError(
                    f"At least one provider API key is required for LUVV_ENV={self.luvv_env.value}"
                )

        return self

    @property
    def provider_order_list(self) -> list[str]:
        """Parse comma-separated provider order into a list."""
        return [p.strip().lower() for p in self.provider_order.split(",") if p.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    def api_key_for(self, provider: str) -> str | None:
        """Return the configured API key for a provider, if any."""
        return getattr(self, f"{provider}_api_key", None)

    def model_for(self, provider: str) -> str:
        """Return the configured model name for a provider."""
        return getattr(self, f"{provider}_model")

    def daily_quota_for(self, provider: str) -> int | None:
        """Return the daily success ceiling for a provider (None = unlimited)."""
        return getattr(self, f"{provider}_daily_quota", None)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If required settings are missing or invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
