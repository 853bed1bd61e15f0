"""Luvv schema - message_library, ai_usage_logs, site_visits, provider_cursor

Revision ID: 0001
Revises:
Create Date: 2026-02-01

- message_library: template store, placeholder text only, append-only
- ai_usage_logs: per-provider outcome ledger driving daily quota admission
- site_visits: landing-page visit counter for the dashboard
- provider_cursor: persisted round-robin rotation position
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_BigIntId = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    # ==========================================================================
    # message_library table
    # ==========================================================================
    op.create_table(
        "message_library",
        sa.Column("id", _BigIntId, autoincrement=True, nullable=False),
        sa.Column("relationship", sa.Text(), nullable=False),
        sa.Column("tone", sa.Text(), nullable=False),
        sa.Column("message_text", sa.Text(), nullable=False),
        sa.Column("provider", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_message_library_relationship_tone",
        "message_library",
        ["relationship", "tone"],
    )
    op.create_index("ix_message_library_created_at", "message_library", ["created_at"])

    # ==========================================================================
    # ai_usage_logs table
    # ==========================================================================
    op.create_table(
        "ai_usage_logs",
        sa.Column("id", _BigIntId, autoincrement=True, nullable=False),
        sa.Column("model_name", sa.Text(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('success', 'error', 'fallback')",
            name="ck_ai_usage_logs_status",
        ),
    )
    op.create_index(
        "ix_ai_usage_logs_model_created",
        "ai_usage_logs",
        ["model_name", "created_at"],
    )

    # ==========================================================================
    # site_visits table
    # ==========================================================================
    op.create_table(
        "site_visits",
        sa.Column("id", _BigIntId, autoincrement=True, nullable=False),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_site_visits_created_at", "site_visits", ["created_at"])

    # ==========================================================================
    # provider_cursor table
    # ==========================================================================
    provider_cursor = op.create_table(
        "provider_cursor",
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("position", sa.Integer(), server_default="0", nullable=False),
        sa.PrimaryKeyConstraint("name"),
    )
    op.bulk_insert(provider_cursor, [{"name": "providers", "position": 0}])


def downgrade() -> None:
    op.drop_table("provider_cursor")
    op.drop_index("ix_site_visits_created_at", table_name="site_visits")
    op.drop_table("site_visits")
    op.drop_index("ix_ai_usage_logs_model_created", table_name="ai_usage_logs")
    op.drop_table("ai_usage_logs")
    op.drop_index("ix_message_library_created_at", table_name="message_library")
    op.drop_index("ix_message_library_relationship_tone", table_name="message_library")
    op.drop_table("message_library")
