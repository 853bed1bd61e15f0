"""Dashboard stats and visit counting.

All windows are half-open [start, end) in UTC:
- today: since today's midnight
- yesterday: [yesterday midnight, today midnight)
- week: last 7 calendar days including today
- last_week: the 7 days before that
- month: since the first of the current month

Load is generated templates today relative to DAILY_CAPACITY, capped at 100.
"""

from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from luvv.db.models import AIUsageLog, MessageTemplate, SiteVisit, UsageStatus
from luvv.db.session import transaction
from luvv.logging import get_logger
from luvv.schemas.stats import (
    DailyCount,
    DashboardStats,
    HealthStats,
    ProviderHealth,
    VisitCounts,
)
from luvv.services.usage import start_of_day

logger = get_logger(__name__)

DAILY_CAPACITY = 250
DAILY_HISTORY_DAYS = 7


def record_visit(db: Session, now: datetime | None = None) -> None:
    """Append one site visit."""
    visit = SiteVisit()
    if now is not None:
        visit.created_at = now
    with transaction(db):
        db.add(visit)


def _count_between(db: Session, model, start: datetime, end: datetime | None = None) -> int:
    stmt = select(func.count()).select_from(model).where(model.created_at >= start)
    if end is not None:
        stmt = stmt.where(model.created_at < end)
    return db.scalar(stmt) or 0


def _visit_counts(db: Session, today: datetime) -> VisitCounts:
    yesterday = today - timedelta(days=1)
    week_start = today - timedelta(days=DAILY_HISTORY_DAYS - 1)
    last_week_start = week_start - timedelta(days=7)
    month_start = today.replace(day=1)

    return VisitCounts(
        today=_count_between(db, SiteVisit, today),
        yesterday=_count_between(db, SiteVisit, yesterday, today),
        week=_count_between(db, SiteVisit, week_start),
        last_week=_count_between(db, SiteVisit, last_week_start, week_start),
        month=_count_between(db, SiteVisit, month_start),
    )


def _relationship_counts(db: Session) -> dict[str, int]:
    stmt = (
        select(MessageTemplate.relationship, func.count())
        .group_by(MessageTemplate.relationship)
        .order_by(func.count().desc(), MessageTemplate.relationship)
    )
    return {relationship: count for relationship, count in db.execute(stmt).all()}


def _daily_messages(db: Session, today: datetime) -> list[DailyCount]:
    days = []
    for offset in range(DAILY_HISTORY_DAYS - 1, -1, -1):
        day_start = today - timedelta(days=offset)
        day_end = day_start + timedelta(days=1)
        days.append(
            DailyCount(
                date=day_start.date().isoformat(),
                count=_count_between(db, MessageTemplate, day_start, day_end),
            )
        )
    return days


def _provider_health(db: Session, today: datetime) -> list[ProviderHealth]:
    stmt = (
        select(AIUsageLog.model_name, AIUsageLog.status, func.count())
        .where(AIUsageLog.created_at >= today)
        .group_by(AIUsageLog.model_name, AIUsageLog.status)
    )

    by_model: dict[str, dict[UsageStatus, int]] = {}
    for model_name, status, count in db.execute(stmt).all():
        by_model.setdefault(model_name, {})[UsageStatus(status)] = count

    return [
        ProviderHealth(
            model_name=model_name,
            success=counts.get(UsageStatus.success, 0),
            error=counts.get(UsageStatus.error, 0),
            fallback=counts.get(UsageStatus.fallback, 0),
        )
        for model_name, counts in sorted(by_model.items())
    ]


def get_dashboard_stats(db: Session, now: datetime | None = None) -> DashboardStats:
    """Compute every dashboard aggregate in one pass over the tables.

    Args:
        db: Database session.
        now: Reference instant (defaults to the current UTC time).

    Returns:
        DashboardStats with visit windows, generation counts and health.
    """
    if now is None:
        now = datetime.now(UTC)
    today = start_of_day(now)
    yesterday = today - timedelta(days=1)

    generated_today = _count_between(db, MessageTemplate, today)
    providers = _provider_health(db, today)

    if any(p.success for p in providers):
        ai_status = "operational"
    elif providers:
        ai_status = "degraded"
    else:
        ai_status = "idle"

    stats = DashboardStats(
        visits=_visit_counts(db, today),
        relationships=_relationship_counts(db),
        total_generated=db.scalar(select(func.count()).select_from(MessageTemplate)) or 0,
        generated_today=generated_today,
        generated_yesterday=_count_between(db, MessageTemplate, yesterday, today),
        daily_messages=_daily_messages(db, today),
        health=HealthStats(
            load_percent=min(round(generated_today * 100 / DAILY_CAPACITY), 100),
            ai_status=ai_status,
            providers=providers,
        ),
    )

    logger.info(
        "stats.computed",
        total_generated=stats.total_generated,
        generated_today=generated_today,
        ai_status=ai_status,
    )
    return stats
