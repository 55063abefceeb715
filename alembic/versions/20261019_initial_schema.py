"""initial_schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19 09:00:00

Create profiles, items, sync runs, OAuth tokens and push subscriptions.
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID


# revision identifiers, used by Alembic.
revision: str = "20261019_initial"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    ]


def _user_fk() -> sa.Column:
    return sa.Column(
        "user_id",
        UUID(as_uuid=True),
        sa.ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def upgrade() -> None:
    """Create all tables."""
    op.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto")

    # profiles - one row per user; id is the auth user id
    op.create_table(
        "profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.Text, nullable=False),
        sa.Column("full_name", sa.Text),
        sa.Column(
            "initial_extraction_completed",
            sa.Boolean,
            nullable=False,
            server_default="false",
        ),
        sa.Column("sync_enabled", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("last_sync_at", sa.TIMESTAMP(timezone=True)),
        sa.Column("sync_lock_expires_at", sa.TIMESTAMP(timezone=True)),
        *_timestamps(),
    )

    # items - extracted tasks, receipts and meetings
    op.create_table(
        "items",
        _uuid_pk(),
        _user_fk(),
        sa.Column("email_id", sa.Text, nullable=False),
        sa.Column("category", sa.Text, nullable=False),
        sa.Column("priority", sa.Text, nullable=False, server_default="medium"),
        sa.Column("status", sa.Text, nullable=False, server_default="pending"),
        sa.Column("title", sa.Text, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("confidence", sa.Float, nullable=False),
        sa.Column("extraction_notes", sa.Text),
        sa.Column("receipt_details", JSONB),
        sa.Column("receipt_category", sa.Text),
        sa.Column("meeting_details", JSONB),
        sa.Column("calendar_event_id", sa.Text),
        sa.Column("sender_name", sa.Text, nullable=False, server_default=""),
        sa.Column("sender_email", sa.Text, nullable=False, server_default=""),
        sa.Column("email_subject", sa.Text, nullable=False, server_default=""),
        sa.Column("email_snippet", sa.Text, nullable=False, server_default=""),
        sa.Column("email_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("has_attachment", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("attachment_ids", ARRAY(sa.Text), nullable=False, server_default="{}"),
        sa.Column("user_feedback", sa.Text),
        sa.Column("feedback_comment", sa.Text),
        sa.Column("feedback_at", sa.TIMESTAMP(timezone=True)),
        sa.Column("snoozed_until", sa.TIMESTAMP(timezone=True)),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True)),
        *_timestamps(),
        sa.UniqueConstraint(
            "user_id", "email_id", "category", "title", name="uq_items_email_category_title"
        ),
        sa.CheckConstraint(
            "priority IN ('urgent', 'high', 'medium', 'low')", name="ck_items_priority"
        ),
        sa.CheckConstraint(
            "status IN ('pending', 'completed', 'snoozed', 'deleted')", name="ck_items_status"
        ),
        sa.CheckConstraint("confidence >= 0 AND confidence <= 1", name="ck_items_confidence"),
    )
    op.create_index("idx_items_user_email", "items", ["user_id", "email_id"])
    op.create_index("idx_items_user_status", "items", ["user_id", "status"])

    # sync_runs - one row per sync attempt
    op.create_table(
        "sync_runs",
        _uuid_pk(),
        _user_fk(),
        sa.Column("sync_type", sa.Text, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default="running"),
        sa.Column("started_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True)),
        sa.Column("emails_fetched", sa.Integer, nullable=False, server_default="0"),
        sa.Column("emails_processed", sa.Integer, nullable=False, server_default="0"),
        sa.Column("items_created", sa.Integer, nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text),
        sa.CheckConstraint(
            "sync_type IN ('initial', 'manual', 'scheduled')", name="ck_sync_runs_type"
        ),
        sa.CheckConstraint(
            "status IN ('running', 'success', 'failed')", name="ck_sync_runs_status"
        ),
    )
    op.create_index("ix_sync_runs_user_id", "sync_runs", ["user_id"])

    # oauth_tokens - Gmail credentials
    op.create_table(
        "oauth_tokens",
        _uuid_pk(),
        _user_fk(),
        sa.Column("provider", sa.Text, nullable=False, server_default="google"),
        sa.Column("access_token", sa.Text, nullable=False),
        sa.Column("refresh_token", sa.Text, nullable=False),
        sa.Column("expires_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("scopes", ARRAY(sa.Text)),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "provider", name="uq_oauth_tokens_user_provider"),
    )

    # push_subscriptions - browser web push endpoints
    op.create_table(
        "push_subscriptions",
        _uuid_pk(),
        _user_fk(),
        sa.Column("endpoint", sa.Text, nullable=False, unique=True),
        sa.Column("p256dh", sa.Text, nullable=False),
        sa.Column("auth", sa.Text, nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_push_subscriptions_user_id", "push_subscriptions", ["user_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("push_subscriptions")
    op.drop_table("oauth_tokens")
    op.drop_table("sync_runs")
    op.drop_table("items")
    op.drop_table("profiles")
