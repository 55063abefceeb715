"""User profile model carrying sync state."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from neriah.models.base import Base


class Profile(Base):
    """A Neriah user and the sync bookkeeping the pipeline needs.

    The primary key is the authenticated user's id, so it doubles as the
    ``user_id`` referenced by items, sync runs and tokens.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    email: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String, nullable=True)
    initial_extraction_completed: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false"
    )
    sync_enabled: Mapped[bool] = mapped_column(Boolean, default=True, server_default="true")
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    # Lease held by the run currently syncing this user
    sync_lock_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
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
        return (
            f"Profile(id={self.id}, initial_done={self.initial_extraction_completed}, "
            f"sync_enabled={self.sync_enabled})"
        )
