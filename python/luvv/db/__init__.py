"""Database module for Luvv.

Provides engine creation, session management, transaction helpers, and ORM models.
"""

from luvv.db.engine import create_db_engine, get_engine
from luvv.db.models import (
    AIUsageLog,
    Base,
    MessageTemplate,
    ProviderCursor,
    Relationship,
    SiteVisit,
    Tone,
    UsageStatus,
)
from luvv.db.session import create_session_factory, transaction

__all__ = [
    # Engine and session
    "create_db_engine",
    "get_engine",
    "create_session_factory",
    "transaction",
    # Base
    "Base",
    # Enums
    "Relationship",
    "Tone",
    "UsageStatus",
    # Models
    "MessageTemplate",
    "AIUsageLog",
    "SiteVisit",
    "ProviderCursor",
]
