"""SQLAlchemy ORM models for Luvv.

Defines all database tables using SQLAlchemy 2.x declarative patterns.
Tables are append-mostly: templates and usage rows are never updated or
deleted by the application.
"""

from datetime import UTC, datetime
from enum import Enum as PyEnum

from sqlalchemy import BigInteger, DateTime, Enum, Index, Integer, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
_BigIntId = BigInteger().with_variant(Integer, "sqlite")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Enums
# =============================================================================


class Relationship(str, PyEnum):
    """Who the card is for. Closed set, matched case-sensitively."""

    spouse = "Spouse"
    girlfriend = "Girlfriend"
    boyfriend = "Boyfriend"
    crush = "Crush"
    ex = "Ex"
    male_friend = "Male Friend"
    female_friend = "Female Friend"
    father = "Father"
    mother = "Mother"
    sister = "Sister"
    brother = "Brother"
    cousin = "Cousin"
    pastor = "Pastor"
    employer = "Employer"
    customer = "Customer"


class Tone(str, PyEnum):
    """Requested writing style."""

    romantic = "Romantic"
    professional = "Professional"
    friendly = "Friendly"
    polite = "Polite"
    funny = "Funny"
    heartbroken = "Heartbroken"
    apology = "Apology"
    appreciation = "Appreciation"


class UsageStatus(str, PyEnum):
    """Terminal outcome recorded in the usage ledger.

    States:
        success: Provider produced at least one usable message
        error: Provider exhausted its attempts or produced nothing usable
        fallback: Request was answered from the safety net
    """

    success = "success"
    error = "error"
    fallback = "fallback"


# =============================================================================
# Models
# =============================================================================


class MessageTemplate(Base):
    """Previously generated message, stored in placeholder form.

    message_text carries [RECIPIENT] / [SENDER] tokens, never real names.
    Rows act both as the cache and as the disaster-recovery reservoir.
    """

    __tablename__ = "message_library"

    id: Mapped[int] = mapped_column(_BigIntId, primary_key=True, autoincrement=True)
    relationship: Mapped[str] = mapped_column(Text, nullable=False)
    tone: Mapped[str] = mapped_column(Text, nullable=False)
    message_text: Mapped[str] = mapped_column(Text, nullable=False)
    provider: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_message_library_relationship_tone", "relationship", "tone"),
        Index("ix_message_library_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<MessageTemplate(id={self.id}, relationship={self.relationship!r}, "
            f"tone={self.tone!r}, provider={self.provider!r})>"
        )


class AIUsageLog(Base):
    """Append-only ledger of generation outcomes per provider tag."""

    __tablename__ = "ai_usage_logs"

    id: Mapped[int] = mapped_column(_BigIntId, primary_key=True, autoincrement=True)
    model_name: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[UsageStatus] = mapped_column(
        Enum(UsageStatus, name="usage_status", native_enum=False, length=16),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (Index("ix_ai_usage_logs_model_created", "model_name", "created_at"),)


class SiteVisit(Base):
    """One landing-page visit. Read only by the stats service."""

    __tablename__ = "site_visits"

    id: Mapped[int] = mapped_column(_BigIntId, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utcnow,
        server_default=func.now(),
        nullable=False,
        index=True,
    )


class ProviderCursor(Base):
    """Persisted rotation cursor for the round-robin provider policy."""

    __tablename__ = "provider_cursor"

    name: Mapped[str] = mapped_column(Text, primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
