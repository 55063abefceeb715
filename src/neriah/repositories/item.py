"""Item repository for database operations."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import ColumnElement, and_, delete, func, not_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.models.item import Item

RECEIPT_CATEGORIES = ("receipt", "invoice")


def _contains(column: ColumnElement[str], text: str) -> ColumnElement[bool]:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


class ItemRepository:
    """Repository for item database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def create_many(self, items: Sequence[Item]) -> list[Item]:
        """Insert a batch of items in one transaction.

        Either every item is committed or none is; the caller is expected to
        roll back the session if this raises.

        Args:
            items: Unsaved items.

        Returns:
            The persisted items.
        """
        if not items:
            return []
        self.session.add_all(items)
        await self.session.commit()
        return list(items)

    async def find_existing_email_ids(self, user_id: UUID, email_ids: Sequence[str]) -> set[str]:
        """Return which of the given message ids already have items.

        Args:
            user_id: Owner of the items.
            email_ids: Candidate message ids.

        Returns:
            Subset of ``email_ids`` with at least one stored item.
        """
        if not email_ids:
            return set()
        result = await self.session.execute(
            select(Item.email_id)
            .where(and_(Item.user_id == user_id, Item.email_id.in_(list(email_ids))))
            .distinct()
        )
        return set(result.scalars().all())

    async def get_by_id(self, item_id: UUID, user_id: UUID | None = None) -> Item | None:
        """Get item by ID.

        Args:
            item_id: Item UUID.
            user_id: Optional owner to scope the lookup.

        Returns:
            Item if found, None otherwise.
        """
        query = select(Item).where(Item.id == item_id)
        if user_id is not None:
            query = query.where(Item.user_id == user_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_by_user(
        self,
        user_id: UUID,
        status: str | None = None,
        category: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Item], int]:
        """List a user's items, newest email first.

        Deleted items are excluded unless ``status="deleted"`` is requested.

        Args:
            user_id: Owner.
            status: Optional status filter.
            category: Optional category filter.
            limit: Page size.
            offset: Rows to skip.

        Returns:
            Tuple of (items, total matching count).
        """
        conditions = [Item.user_id == user_id]
        if status is not None:
            conditions.append(Item.status == status)
        else:
            conditions.append(Item.status != "deleted")
        if category is not None:
            conditions.append(Item.category == category)

        count_result = await self.session.execute(
            select(func.count()).select_from(Item).where(and_(*conditions))
        )
        total = count_result.scalar() or 0

        result = await self.session.execute(
            select(Item)
            .where(and_(*conditions))
            .order_by(Item.email_date.desc(), Item.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all()), total

    async def search(
        self,
        user_id: UUID,
        *,
        categories: Sequence[str] | None = None,
        priority: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        keywords: Sequence[str] = (),
        negations: Sequence[str] = (),
        limit: int = 5,
    ) -> list[Item]:
        """Find pending items matching free-text filters.

        A keyword matches when any of title, description, sender or subject
        contains it; items matching any keyword are returned. An item is
        dropped when a negated phrase appears in its title, subject or sender.

        Args:
            user_id: Owner.
            categories: Restrict to these categories.
            priority: Restrict to one priority.
            start: Earliest email date, inclusive.
            end: Latest email date, inclusive.
            keywords: Case-insensitive search terms.
            negations: Case-insensitive phrases to exclude.
            limit: Maximum results.

        Returns:
            Matching items, newest email first.
        """
        conditions = [Item.user_id == user_id, Item.status == "pending"]
        if categories:
            conditions.append(Item.category.in_(list(categories)))
        if priority is not None:
            conditions.append(Item.priority == priority)
        if start is not None:
            conditions.append(Item.email_date >= start)
        if end is not None:
            conditions.append(Item.email_date <= end)
        if keywords:
            searchable = (
                Item.title,
                Item.description,
                Item.sender_name,
                Item.sender_email,
                Item.email_subject,
            )
            conditions.append(
                or_(*(_contains(column, word) for word in keywords for column in searchable))
            )
        for phrase in negations:
            conditions.append(
                not_(
                    or_(
                        _contains(Item.title, phrase),
                        _contains(Item.email_subject, phrase),
                        _contains(Item.sender_name, phrase),
                        _contains(Item.sender_email, phrase),
                    )
                )
            )

        result = await self.session.execute(
            select(Item)
            .where(and_(*conditions))
            .order_by(Item.email_date.desc(), Item.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def find_receipts(
        self,
        user_id: UUID,
        *,
        start: datetime,
        end: datetime,
        receipt_category: str | None = None,
        vendor: str | None = None,
        negations: Sequence[str] = (),
    ) -> list[Item]:
        """Pending receipts and invoices dated inside a window.

        Args:
            user_id: Owner.
            start: Earliest email date, inclusive.
            end: Latest email date, inclusive.
            receipt_category: Restrict to one spending category.
            vendor: Case-insensitive vendor substring.
            negations: Phrases excluded when found in the vendor or subject.

        Returns:
            Matching items, newest email first.
        """
        vendor_name = func.coalesce(Item.receipt_details["vendor"].astext, "")
        conditions = [
            Item.user_id == user_id,
            Item.status == "pending",
            Item.category.in_(RECEIPT_CATEGORIES),
            Item.email_date >= start,
            Item.email_date <= end,
        ]
        if receipt_category is not None:
            conditions.append(Item.receipt_category == receipt_category)
        if vendor:
            conditions.append(_contains(vendor_name, vendor))
        for phrase in negations:
            conditions.append(
                not_(or_(_contains(vendor_name, phrase), _contains(Item.email_subject, phrase)))
            )

        result = await self.session.execute(
            select(Item)
            .where(and_(*conditions))
            .order_by(Item.email_date.desc(), Item.created_at.desc())
        )
        return list(result.scalars().all())

    async def count_by_status(self, user_id: UUID) -> dict[str, int]:
        """Count a user's items per status."""
        result = await self.session.execute(
            select(Item.status, func.count())
            .where(Item.user_id == user_id)
            .group_by(Item.status)
        )
        return {status: count for status, count in result.all()}

    async def _save(self, item: Item) -> Item:
        await self.session.commit()
        await self.session.refresh(item)
        return item

    async def complete(self, item: Item) -> Item:
        """Mark an item completed."""
        item.status = "completed"
        item.completed_at = datetime.now(UTC)
        return await self._save(item)

    async def snooze(self, item: Item, until: datetime) -> Item:
        """Hide an item until the given time."""
        item.status = "snoozed"
        item.snoozed_until = until
        return await self._save(item)

    async def soft_delete(self, item: Item) -> Item:
        """Mark an item deleted without removing the row."""
        item.status = "deleted"
        return await self._save(item)

    async def restore(self, item: Item) -> Item:
        """Return an item to pending."""
        item.status = "pending"
        item.snoozed_until = None
        item.completed_at = None
        return await self._save(item)

    async def set_feedback(self, item: Item, feedback: str, comment: str | None = None) -> Item:
        """Record whether the extraction was helpful."""
        item.user_feedback = feedback
        item.feedback_at = datetime.now(UTC)
        if comment:
            item.feedback_comment = comment
        return await self._save(item)

    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Physically delete every item a user owns.

        Returns:
            Number of rows removed.
        """
        result = await self.session.execute(delete(Item).where(Item.user_id == user_id))
        await self.session.commit()
        return int(result.rowcount or 0)
