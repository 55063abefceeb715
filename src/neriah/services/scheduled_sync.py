"""Periodic sweep that syncs every eligible user in turn."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.repositories.profile import ProfileRepository
from neriah.services.sync_service import SyncInProgressError, SyncService

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]
SyncServiceBuilder = Callable[[AsyncSession], SyncService]


@dataclass
class SweepReport:
    """Totals for one sweep.

    Attributes:
        users_processed: Eligible users visited.
        successful: Users whose run succeeded.
        failed: Users whose run failed.
        skipped: Users skipped because a run was already in progress.
        total_items_extracted: Items created across all users.
        errors: Failure message per user ID.
    """

    users_processed: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    total_items_extracted: int = 0
    errors: dict[str, str] = field(default_factory=dict)


class ScheduledSyncService:
    """Runs the scheduled sync for all eligible users, one at a time.

    Each user gets a fresh session so a failure (and its rollback) stays
    contained to that user.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        build_service: SyncServiceBuilder,
        inter_user_delay_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the sweep.

        Args:
            session_factory: Opens a database session.
            build_service: Builds a SyncService bound to a session.
            inter_user_delay_seconds: Pause between consecutive users.
            sleep: Sleep function, for tests.
        """
        self.session_factory = session_factory
        self.build_service = build_service
        self.inter_user_delay_seconds = inter_user_delay_seconds
        self._sleep = sleep

    async def _eligible_users(self) -> list[UUID]:
        async with self.session_factory() as session:
            return await ProfileRepository(session).list_sync_eligible()

    async def run_sweep(self) -> SweepReport:
        """Sync every user with sync enabled and onboarding complete.

        Returns:
            Aggregate counts. A single user's failure never fails the sweep.
        """
        user_ids = await self._eligible_users()
        report = SweepReport(users_processed=len(user_ids))
        await logger.ainfo("sweep_started", users=len(user_ids))

        for index, user_id in enumerate(user_ids):
            if index > 0 and self.inter_user_delay_seconds > 0:
                await self._sleep(self.inter_user_delay_seconds)
            try:
                async with self.session_factory() as session:
                    result = await self.build_service(session).run_scheduled(user_id)
            except SyncInProgressError:
                report.skipped += 1
                await logger.ainfo("sweep_user_skipped", user_id=str(user_id))
            except Exception as e:
                report.failed += 1
                report.errors[str(user_id)] = str(e)
                await logger.aerror("sweep_user_failed", user_id=str(user_id), error=str(e))
            else:
                report.successful += 1
                report.total_items_extracted += result.items_created

        await logger.ainfo(
            "sweep_completed",
            users=report.users_processed,
            successful=report.successful,
            failed=report.failed,
            skipped=report.skipped,
            total_items_extracted=report.total_items_extracted,
        )
        return report
