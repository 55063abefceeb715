"""Sync run repository for database operations."""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import and_, delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.models.sync_run import SyncRun


class SyncRunRepository:
    """Repository for sync run database operations.

    Terminal transitions are guarded by ``status = 'running'`` in the UPDATE,
    so a run can be closed only once.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def start(self, user_id: UUID, sync_type: str) -> SyncRun:
        """Create a run in the ``running`` state.

        Args:
            user_id: User being synced.
            sync_type: "initial", "manual" or "scheduled".

        Returns:
            The new run.
        """
        run = SyncRun(
            user_id=user_id,
            sync_type=sync_type,
            status="running",
            started_at=datetime.now(UTC),
        )
        self.session.add(run)
        await self.session.commit()
        await self.session.refresh(run)
        return run

    async def complete(
        self,
        run_id: UUID,
        emails_fetched: int,
        emails_processed: int,
        items_created: int,
    ) -> bool:
        """Mark a running run successful with its final counts.

        Returns:
            True if the run transitioned, False if it was already terminal.
        """
        result = await self.session.execute(
            update(SyncRun)
            .where(and_(SyncRun.id == run_id, SyncRun.status == "running"))
            .values(
                status="success",
                completed_at=datetime.now(UTC),
                emails_fetched=emails_fetched,
                emails_processed=emails_processed,
                items_created=items_created,
            )
        )
        await self.session.commit()
        return bool(result.rowcount)

    async def fail(self, run_id: UUID, error_message: str) -> bool:
        """Mark a running run failed.

        Returns:
            True if the run transitioned, False if it was already terminal.
        """
        result = await self.session.execute(
            update(SyncRun)
            .where(and_(SyncRun.id == run_id, SyncRun.status == "running"))
            .values(
                status="failed",
                completed_at=datetime.now(UTC),
                items_created=0,
                error_message=error_message,
            )
        )
        await self.session.commit()
        return bool(result.rowcount)

    async def get_by_id(self, run_id: UUID) -> SyncRun | None:
        """Get run by ID."""
        result = await self.session.execute(select(SyncRun).where(SyncRun.id == run_id))
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: UUID, limit: int = 20) -> list[SyncRun]:
        """List a user's most recent runs, newest first."""
        result = await self.session.execute(
            select(SyncRun)
            .where(SyncRun.user_id == user_id)
            .order_by(SyncRun.started_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delete_all_for_user(self, user_id: UUID) -> int:
        """Delete a user's run history."""
        result = await self.session.execute(delete(SyncRun).where(SyncRun.user_id == user_id))
        await self.session.commit()
        return int(result.rowcount or 0)
