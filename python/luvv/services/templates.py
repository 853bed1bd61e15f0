"""Template store service layer.

The message_library table doubles as the cache (scoped reads before any
provider call) and as the disaster-recovery reservoir (scoped, then unscoped,
reads after every provider failed). Rows are inserted only from AI output and
never updated or deleted.

Reads return distinct message texts in random order.
"""

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from luvv.db.models import MessageTemplate
from luvv.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LIMIT = 3


class PersistenceError(Exception):
    """A write to the template store or usage ledger failed.

    Raised by the persistence path after the response is already on its way;
    logged, never surfaced to the caller.
    """


def find_templates(
    db: Session, relationship: str, tone: str, limit: int = DEFAULT_LIMIT
) -> list[str]:
    """Return up to `limit` distinct template texts for (relationship, tone)."""
    stmt = (
        select(MessageTemplate.message_text)
        .where(
            MessageTemplate.relationship == relationship,
            MessageTemplate.tone == tone,
        )
        .group_by(MessageTemplate.message_text)
        .order_by(func.random())
        .limit(limit)
    )
    return list(db.scalars(stmt).all())


def find_any_templates(db: Session, limit: int = DEFAULT_LIMIT) -> list[str]:
    """Return up to `limit` distinct template texts from the whole store."""
    stmt = (
        select(MessageTemplate.message_text)
        .group_by(MessageTemplate.message_text)
        .order_by(func.random())
        .limit(limit)
    )
    return list(db.scalars(stmt).all())


def insert_templates(
    db: Session,
    *,
    relationship: str,
    tone: str,
    messages: list[str],
    provider: str,
) -> int:
    """Append template-form messages to the store.

    Args:
        db: Database session.
        relationship: Relationship value the messages were generated for.
        tone: Tone value the messages were generated for.
        messages: Messages already converted to template form.
        provider: Origin tag of the provider that wrote them.

    Returns:
        Number of rows inserted.

    Raises:
        PersistenceError: If the write fails.
    """
    if not messages:
        return 0

    rows = [
        MessageTemplate(
            relationship=relationship,
            tone=tone,
            message_text=message,
            provider=provider,
        )
        for message in messages
    ]

    try:
        db.add_all(rows)
        db.flush()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceError(f"Failed to insert templates: {type(e).__name__}") from e

    return len(rows)


def count_templates(db: Session) -> int:
    """Total number of stored templates."""
    return db.scalar(select(func.count()).select_from(MessageTemplate)) or 0
