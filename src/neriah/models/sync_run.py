"""Sync run model: one row per orchestrator invocation."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from neriah.models.base import Base

SYNC_TYPES = ("initial", "manual", "scheduled")
SYNC_STATUSES = ("running", "success", "failed")


class SyncRun(Base):
    """Audit record of a single sync.

    Created ``running`` and moved to ``success`` or ``failed`` exactly once.
    """

    __tablename__ = "sync_runs"

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
        index=True,
    )
    sync_type: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, default="running", server_default="running")
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    emails_fetched: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    emails_processed: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    items_created: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        """Return string representation."""
        return f"SyncRun(id={self.id}, type={self.sync_type!r}, status={self.status!r})"
