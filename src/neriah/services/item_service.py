"""Item service: listing and one-tap user actions."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.models.item import Item
from neriah.repositories.item import ItemRepository
from neriah.schemas.item import ItemListResponse, ItemResponse, ItemStatsResponse

logger = structlog.get_logger(__name__)


class ItemNotFoundError(Exception):
    """Raised when an item does not exist or belongs to someone else."""

    def __init__(self, item_id: UUID) -> None:
        self.item_id = item_id
        super().__init__(f"Item {item_id} not found")


class InvalidSnoozeError(ValueError):
    """Raised when a snooze time is not in the future."""


class ItemService:
    """Service for item operations scoped to the owning user."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self._repo = ItemRepository(session)

    async def _get_owned(self, item_id: UUID, user_id: UUID) -> Item:
        item = await self._repo.get_by_id(item_id, user_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def list_items(
        self,
        user_id: UUID,
        status: str | None = None,
        category: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> ItemListResponse:
        """List items for a user.

        Args:
            user_id: Owner.
            status: Optional status filter; deleted items are hidden otherwise.
            category: Optional category filter.
            limit: Page size.
            offset: Rows to skip.

        Returns:
            Paginated item list.
        """
        items, total = await self._repo.list_by_user(
            user_id, status=status, category=category, limit=limit, offset=offset
        )
        return ItemListResponse(
            items=[ItemResponse.model_validate(item) for item in items],
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(items) < total,
        )

    async def get_item(self, item_id: UUID, user_id: UUID) -> ItemResponse:
        """Get one item.

        Raises:
            ItemNotFoundError: If the item does not exist for this user.
        """
        return ItemResponse.model_validate(await self._get_owned(item_id, user_id))

    async def get_stats(self, user_id: UUID) -> ItemStatsResponse:
        """Count items per status."""
        counts = await self._repo.count_by_status(user_id)
        return ItemStatsResponse(
            pending=counts.get("pending", 0),
            completed=counts.get("completed", 0),
            snoozed=counts.get("snoozed", 0),
            deleted=counts.get("deleted", 0),
        )

    async def complete_item(self, item_id: UUID, user_id: UUID) -> ItemResponse:
        """Mark an item done.

        Raises:
            ItemNotFoundError: If the item does not exist for this user.
        """
        item = await self._repo.complete(await self._get_owned(item_id, user_id))
        await logger.ainfo("item_completed", item_id=str(item_id), user_id=str(user_id))
        return ItemResponse.model_validate(item)

    async def snooze_item(self, item_id: UUID, user_id: UUID, until: datetime) -> ItemResponse:
        """Hide an item until a later time.

        Raises:
            InvalidSnoozeError: If ``until`` is not in the future.
            ItemNotFoundError: If the item does not exist for this user.
        """
        if until.tzinfo is None:
            until = until.replace(tzinfo=UTC)
        if until <= datetime.now(UTC):
            raise InvalidSnoozeError("Snooze time must be in the future")
        item = await self._repo.snooze(await self._get_owned(item_id, user_id), until)
        return ItemResponse.model_validate(item)

    async def delete_item(self, item_id: UUID, user_id: UUID) -> ItemResponse:
        """Soft-delete an item.

        Raises:
            ItemNotFoundError: If the item does not exist for this user.
        """
        item = await self._repo.soft_delete(await self._get_owned(item_id, user_id))
        return ItemResponse.model_validate(item)

    async def restore_item(self, item_id: UUID, user_id: UUID) -> ItemResponse:
        """Move an item back to pending."""
        item = await self._repo.restore(await self._get_owned(item_id, user_id))
        return ItemResponse.model_validate(item)

    async def submit_feedback(
        self,
        item_id: UUID,
        user_id: UUID,
        feedback: str,
        comment: str | None = None,
    ) -> ItemResponse:
        """Record whether an extracted item was useful.

        Raises:
            ItemNotFoundError: If the item does not exist for this user.
        """
        item = await self._repo.set_feedback(
            await self._get_owned(item_id, user_id), feedback, comment
        )
        await logger.ainfo(
            "item_feedback", item_id=str(item_id), user_id=str(user_id), feedback=feedback
        )
        return ItemResponse.model_validate(item)
