"""Usage ledger and quota policy.

- record_usage: append one outcome row for a provider tag
- count_successes_since: successes for a tag since an instant
- start_of_day: UTC midnight for the quota window
- next_rotation_offset: read-and-advance the round-robin cursor

Quota admission is read-then-decide: two concurrent requests may both be
admitted at the ceiling. The ledger is a soft limit, not a lock.
"""

from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from luvv.db.models import AIUsageLog, ProviderCursor, UsageStatus
from luvv.db.session import transaction
from luvv.logging import get_logger
from luvv.services.templates import PersistenceError

logger = get_logger(__name__)

ROTATION_CURSOR_NAME = "providers"


def start_of_day(now: datetime | None = None) -> datetime:
    """Return midnight UTC of the calendar day containing `now`."""
    if now is None:
        now = datetime.now(UTC)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    now = now.astimezone(UTC)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def record_usage(db: Session, model_name: str, status: UsageStatus) -> None:
    """Append one ledger row.

    Raises:
        PersistenceError: If the write fails.
    """
    try:
        db.add(AIUsageLog(model_name=model_name, status=UsageStatus(status)))
        db.flush()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to record usage: {type(e).__name__}") from e


def count_successes_since(db: Session, model_name: str, since: datetime) -> int:
    """Count `success` rows for a provider tag created at or after `since`."""
    stmt = (
        select(func.count())
        .select_from(AIUsageLog)
        .where(
            AIUsageLog.model_name == model_name,
            AIUsageLog.status == UsageStatus.success,
            AIUsageLog.created_at >= since,
        )
    )
    return db.scalar(stmt) or 0


def is_quota_exhausted(
    db: Session, model_name: str, daily_quota: int | None, now: datetime | None = None
) -> bool:
    """True when today's successes for the tag reached its ceiling."""
    if daily_quota is None:
        return False
    return count_successes_since(db, model_name, start_of_day(now)) >= daily_quota


def next_rotation_offset(db: Session, size: int) -> int:
    """Return the current rotation offset in [0, size) and advance the cursor.

    Not locked: racing requests may read the same position. A failed write
    (e.g. two requests both creating the cursor row) yields offset 0.
    """
    if size <= 0:
        return 0

    try:
        cursor = db.get(ProviderCursor, ROTATION_CURSOR_NAME)
        if cursor is None:
            cursor = ProviderCursor(name=ROTATION_CURSOR_NAME, position=0)
            db.add(cursor)

        with transaction(db):
            offset = cursor.position % size
            cursor.position = (offset + 1) % size
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("usage.rotation.failed", error=type(e).__name__)
        return 0
    return offset
