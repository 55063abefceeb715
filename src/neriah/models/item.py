"""Item model for actionable things extracted from emails."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from neriah.models.base import Base

ITEM_CATEGORIES = (
    "reply",
    "follow_up",
    "deadline",
    "review",
    "task",
    "receipt",
    "invoice",
    "meeting",
)
ITEM_PRIORITIES = ("urgent", "high", "medium", "low")
ITEM_STATUSES = ("pending", "completed", "snoozed", "deleted")


class Item(Base):
    """A task, receipt or meeting the user can act on."""

    __tablename__ = "items"
    __table_args__ = (
        Index("idx_items_user_email", "user_id", "email_id"),
        Index("idx_items_user_status", "user_id", "status"),
        UniqueConstraint(
            "user_id", "email_id", "category", "title", name="uq_items_email_category_title"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    email_id: Mapped[str] = mapped_column(String, nullable=False)

    category: Mapped[str] = mapped_column(String, nullable=False)
    priority: Mapped[str] = mapped_column(String, default="medium", server_default="medium")
    status: Mapped[str] = mapped_column(String, default="pending", server_default="pending")

    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    extraction_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    receipt_details: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    receipt_category: Mapped[str | None] = mapped_column(String, nullable=True)
    meeting_details: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    calendar_event_id: Mapped[str | None] = mapped_column(String, nullable=True)

    sender_name: Mapped[str] = mapped_column(String, default="", server_default="")
    sender_email: Mapped[str] = mapped_column(String, default="", server_default="")
    email_subject: Mapped[str] = mapped_column(String, default="", server_default="")
    email_snippet: Mapped[str] = mapped_column(Text, default="", server_default="")
    email_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    has_attachment: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false")
    attachment_ids: Mapped[list[str]] = mapped_column(
        ARRAY(String), default=list, server_default="{}"
    )

    user_feedback: Mapped[str | None] = mapped_column(String, nullable=True)
    feedback_comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    feedback_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    snoozed_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"Item(id={self.id}, category={self.category!r}, status={self.status!r})"
