"""Dashboard stats schemas."""

from typing import Literal

from pydantic import BaseModel

AIStatus = Literal["operational", "degraded", "idle"]


class VisitCounts(BaseModel):
    today: int
    yesterday: int
    week: int
    last_week: int
    month: int


class DailyCount(BaseModel):
    date: str  # YYYY-MM-DD, UTC
    count: int


class ProviderHealth(BaseModel):
    model_name: str
    success: int
    error: int
    fallback: int


class HealthStats(BaseModel):
    load_percent: int
    ai_status: AIStatus
    providers: list[ProviderHealth]


class DashboardStats(BaseModel):
    """Aggregates consumed by the admin dashboard.

    Day boundaries are UTC midnights. "week" is the last 7 days including
    today; "last_week" the 7 days before that.
    """

    visits: VisitCounts
    relationships: dict[str, int]
    total_generated: int
    generated_today: int
    generated_yesterday: int
    daily_messages: list[DailyCount]
    health: HealthStats
