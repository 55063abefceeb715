"""Push subscription repository for database operations."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.models.push_subscription import PushSubscription


class PushSubscriptionRepository:
    """Repository for push subscription database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def list_by_user(self, user_id: UUID) -> list[PushSubscription]:
        """All push endpoints a user has registered."""
        result = await self.session.execute(
            select(PushSubscription).where(PushSubscription.user_id == user_id)
        )
        return list(result.scalars().all())

    async def upsert(
        self, user_id: UUID, endpoint: str, p256dh: str, auth: str
    ) -> PushSubscription:
        """Register an endpoint, replacing keys if it is already known.

        Args:
            user_id: Owner.
            endpoint: Push service URL.
            p256dh: Client public key.
            auth: Client auth secret.

        Returns:
            The stored subscription.
        """
        result = await self.session.execute(
            select(PushSubscription).where(PushSubscription.endpoint == endpoint)
        )
        subscription = result.scalar_one_or_none()
        if subscription is None:
            subscription = PushSubscription(endpoint=endpoint)
            self.session.add(subscription)
        subscription.user_id = user_id
        subscription.p256dh = p256dh
        subscription.auth = auth
        await self.session.commit()
        await self.session.refresh(subscription)
        return subscription

    async def delete_by_endpoint(self, endpoint: str) -> bool:
        """Remove a subscription the push service reported as gone."""
        result = await self.session.execute(
            delete(PushSubscription).where(PushSubscription.endpoint == endpoint)
        )
        await self.session.commit()
        return bool(result.rowcount)

    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Remove every subscription a user owns."""
        result = await self.session.execute(
            delete(PushSubscription).where(PushSubscription.user_id == user_id)
        )
        await self.session.commit()
        return int(result.rowcount or 0)
