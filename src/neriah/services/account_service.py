"""Per-user sync settings, history and data reset."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.repositories.item import ItemRepository
from neriah.repositories.profile import ProfileRepository
from neriah.repositories.push_subscription import PushSubscriptionRepository
from neriah.repositories.sync_run import SyncRunRepository
from neriah.schemas.sync import SyncRunResponse, SyncStatusResponse
from neriah.services.sync_service import ProfileNotFoundError

logger = structlog.get_logger(__name__)


class AccountService:
    """Service for a user's sync configuration and stored data."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._profiles = ProfileRepository(session)
        self._runs = SyncRunRepository(session)
        self._items = ItemRepository(session)
        self._subscriptions = PushSubscriptionRepository(session)

    async def get_status(self, user_id: UUID) -> SyncStatusResponse:
        """Sync fields of the user's profile.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        profile = await self._profiles.get(user_id)
        if profile is None:
            raise ProfileNotFoundError(user_id)
        lock = profile.sync_lock_expires_at
        in_progress = lock is not None and lock > datetime.now(UTC)
        return SyncStatusResponse(
            initial_extraction_completed=profile.initial_extraction_completed,
            sync_enabled=profile.sync_enabled,
            last_sync_at=profile.last_sync_at,
            sync_in_progress=in_progress,
        )

    async def set_sync_enabled(self, user_id: UUID, enabled: bool) -> SyncStatusResponse:
        """Opt the user in or out of the scheduled sweep.

        Raises:
            ProfileNotFoundError: If the user has no profile.
        """
        if await self._profiles.set_sync_enabled(user_id, enabled) is None:
            raise ProfileNotFoundError(user_id)
        await logger.ainfo("sync_setting_changed", user_id=str(user_id), sync_enabled=enabled)
        return await self.get_status(user_id)

    async def list_runs(self, user_id: UUID, limit: int = 20) -> list[SyncRunResponse]:
        """Most recent sync runs for the user."""
        runs = await self._runs.list_by_user(user_id, limit=limit)
        return [SyncRunResponse.model_validate(run) for run in runs]

    async def register_push_subscription(
        self, user_id: UUID, endpoint: str, p256dh: str, auth: str
    ) -> None:
        """Store a browser push subscription for the user."""
        await self._subscriptions.upsert(user_id, endpoint, p256dh, auth)
        await logger.ainfo("push_subscription_registered", user_id=str(user_id))

    async def delete_all_data(self, user_id: UUID) -> dict[str, int]:
        """Remove the user's items, run history and push subscriptions.

        The profile is reset so the next extraction is an initial one again.

        Returns:
            Rows deleted per table.
        """
        deleted = {
            "items": await self._items.delete_all_for_user(user_id),
            "sync_runs": await self._runs.delete_all_for_user(user_id),
            "push_subscriptions": await self._subscriptions.delete_all_for_user(user_id),
        }
        await self._profiles.reset_sync_state(user_id)
        await logger.awarning("user_data_deleted", user_id=str(user_id), **deleted)
        return deleted
