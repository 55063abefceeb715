"""Profile repository: eligibility, sync bookkeeping and run locking."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.models.profile import Profile


class ProfileRepository:
    """Repository for profile database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def get(self, user_id: UUID) -> Profile | None:
        """Get a profile by user ID, refreshing any copy already in the session."""
        stmt = (
            select(Profile)
            .where(Profile.id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_sync_eligible(self) -> list[UUID]:
        """IDs of users the scheduled sweep should process, oldest sync first."""
        result = await self.session.execute(
            select(Profile.id)
            .where(
                and_(
                    Profile.sync_enabled.is_(True),
                    Profile.initial_extraction_completed.is_(True),
                )
            )
            .order_by(Profile.last_sync_at.asc().nulls_first())
        )
        return list(result.scalars().all())

    async def claim_sync_lock(self, user_id: UUID, lease: timedelta) -> bool:
        """Atomically take the user's sync lease.

        The claim succeeds when no lease is held or the held lease has
        expired, so a crashed run cannot block the user forever.

        Args:
            user_id: User to lock.
            lease: How long the lease is valid.

        Returns:
            True if this caller now holds the lease.
        """
        now = datetime.now(UTC)
        result = await self.session.execute(
            update(Profile)
            .where(
                and_(
                    Profile.id == user_id,
                    or_(
                        Profile.sync_lock_expires_at.is_(None),
                        Profile.sync_lock_expires_at < now,
                    ),
                )
            )
            .values(sync_lock_expires_at=now + lease)
            .returning(Profile.id)
        )
        claimed = result.scalar_one_or_none() is not None
        await self.session.commit()
        return claimed

    async def release_sync_lock(self, user_id: UUID) -> None:
        """Drop the user's sync lease."""
        await self.session.execute(
            update(Profile).where(Profile.id == user_id).values(sync_lock_expires_at=None)
        )
        await self.session.commit()

    async def mark_synced(
        self,
        user_id: UUID,
        synced_at: datetime,
        initial_completed: bool = False,
    ) -> None:
        """Record a successful sync.

        Args:
            user_id: User that was synced.
            synced_at: New ``last_sync_at``.
            initial_completed: Also set ``initial_extraction_completed``.
        """
        values: dict[str, object] = {"last_sync_at": synced_at}
        if initial_completed:
            values["initial_extraction_completed"] = True
        await self.session.execute(update(Profile).where(Profile.id == user_id).values(**values))
        await self.session.commit()

    async def set_sync_enabled(self, user_id: UUID, enabled: bool) -> Profile | None:
        """Turn the scheduled sweep on or off for a user."""
        profile = await self.get(user_id)
        if profile is None:
            return None
        profile.sync_enabled = enabled
        await self.session.commit()
        await self.session.refresh(profile)
        return profile

    async def reset_sync_state(self, user_id: UUID) -> None:
        """Forget onboarding and sync history so extraction starts over."""
        await self.session.execute(
            update(Profile)
            .where(Profile.id == user_id)
            .values(initial_extraction_completed=False, last_sync_at=None)
        )
        await self.session.commit()
