"""Generation request/response schemas.

The request schema accepts loose strings on purpose: field presence and the
relationship/tone closed sets are checked by GenerationRequest.create() so
that each failure gets its own error code instead of a generic 400.
"""

from pydantic import BaseModel, ConfigDict, Field


class GenerateLuvvRequest(BaseModel):
    """Body of POST /api/generate-luvv."""

    relationship: str | None = None
    tone: str | None = None
    recipient: str | None = None
    sender: str | None = None

    model_config = ConfigDict(extra="ignore")


class GenerateLuvvResponse(BaseModel):
    """Successful generation: 1-3 personalized messages and their origin."""

    messages: list[str] = Field(min_length=1, max_length=3)
    provider: str
