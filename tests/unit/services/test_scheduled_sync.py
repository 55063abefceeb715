"""Tests for the scheduled sweep."""

from __future__ import annotations

import base64
import uuid
from collections.abc import AsyncIterator, Iterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from neriah.models.item import Item
from neriah.providers.base import MailFetchError
from neriah.schemas.extraction import ExtractedTask, ExtractionResult
from neriah.services.extractor import ExtractionRequest
from neriah.services.scheduled_sync import ScheduledSyncService
from neriah.services.sync_policy import SyncMode
from neriah.services.sync_service import SyncInProgressError, SyncResult, SyncService

USERS = [uuid.uuid4(), uuid.uuid4(), uuid.uuid4()]


@asynccontextmanager
async def _session_factory() -> AsyncIterator[MagicMock]:
    yield MagicMock()


@asynccontextmanager
async def _async_session_factory() -> AsyncIterator[AsyncMock]:
    yield AsyncMock()


def _result(items: int) -> SyncResult:
    return SyncResult(
        run_id=uuid.uuid4(),
        mode=SyncMode.SCHEDULED,
        emails_fetched=items,
        emails_processed=items,
        items_created=items,
    )


def _service(outcomes: dict[uuid.UUID, SyncResult | Exception]) -> MagicMock:
    async def run_scheduled(user_id: uuid.UUID) -> SyncResult:
        outcome = outcomes[user_id]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    service = MagicMock()
    service.run_scheduled = AsyncMock(side_effect=run_scheduled)
    return service


@pytest.fixture
def eligible() -> Iterator[AsyncMock]:
    """Patch eligible-user lookup."""
    with patch(
        "neriah.services.scheduled_sync.ProfileRepository.list_sync_eligible",
        new_callable=AsyncMock,
        return_value=USERS,
    ) as mock_list:
        yield mock_list


class TestScheduledSyncService:
    """Tests for ScheduledSyncService.run_sweep."""

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_sweep(self, eligible: AsyncMock) -> None:
        """Test a raising user is counted as failed and the rest still run."""
        service = _service(
            {USERS[0]: _result(2), USERS[1]: RuntimeError("gmail down"), USERS[2]: _result(3)}
        )
        sleep = AsyncMock()
        sweeper = ScheduledSyncService(
            _session_factory, lambda _: service, inter_user_delay_seconds=1.0, sleep=sleep
        )

        report = await sweeper.run_sweep()

        assert report.users_processed == 3
        assert report.successful == 2
        assert report.failed == 1
        assert report.total_items_extracted == 5
        assert report.errors == {str(USERS[1]): "gmail down"}
        assert service.run_scheduled.await_count == 3

    @pytest.mark.asyncio
    async def test_delay_between_users(self, eligible: AsyncMock) -> None:
        """Test the pause happens between users, not before the first."""
        service = _service({user: _result(0) for user in USERS})
        sleep = AsyncMock()
        sweeper = ScheduledSyncService(
            _session_factory, lambda _: service, inter_user_delay_seconds=2.5, sleep=sleep
        )

        await sweeper.run_sweep()

        assert sleep.await_count == 2
        sleep.assert_awaited_with(2.5)

    @pytest.mark.asyncio
    async def test_in_progress_counts_as_skipped(self, eligible: AsyncMock) -> None:
        """Test a locked user is skipped rather than failed."""
        service = _service(
            {
                USERS[0]: SyncInProgressError(USERS[0]),
                USERS[1]: _result(1),
                USERS[2]: _result(1),
            }
        )
        sweeper = ScheduledSyncService(
            _session_factory, lambda _: service, inter_user_delay_seconds=0, sleep=AsyncMock()
        )

        report = await sweeper.run_sweep()

        assert report.skipped == 1
        assert report.successful == 2
        assert report.failed == 0

    @pytest.mark.asyncio
    async def test_no_eligible_users(self) -> None:
        """Test an empty sweep reports zeros."""
        with patch(
            "neriah.services.scheduled_sync.ProfileRepository.list_sync_eligible",
            new_callable=AsyncMock,
            return_value=[],
        ):
            sweeper = ScheduledSyncService(_session_factory, MagicMock(), sleep=AsyncMock())
            report = await sweeper.run_sweep()

        assert report.users_processed == 0
        assert report.successful == 0


@dataclass
class StoredProfile:
    """Per-user sync state."""

    initial_extraction_completed: bool = True
    sync_enabled: bool = True
    last_sync_at: datetime | None = None
    locked: bool = False


@dataclass
class StoredRun:
    """One recorded SyncRun."""

    id: uuid.UUID
    user_id: uuid.UUID
    status: str = "running"
    items_created: int = 0
    error_message: str | None = None


class MemoryProfiles:
    """Profiles for every swept user."""

    def __init__(self, user_ids: Sequence[uuid.UUID]) -> None:
        self.profiles = {user_id: StoredProfile() for user_id in user_ids}

    async def get(self, user_id: uuid.UUID) -> StoredProfile | None:
        return self.profiles.get(user_id)

    async def claim_sync_lock(self, user_id: uuid.UUID, lease: timedelta) -> bool:
        profile = self.profiles[user_id]
        if profile.locked:
            return False
        profile.locked = True
        return True

    async def release_sync_lock(self, user_id: uuid.UUID) -> None:
        self.profiles[user_id].locked = False

    async def mark_synced(
        self, user_id: uuid.UUID, synced_at: datetime, initial_completed: bool = False
    ) -> None:
        self.profiles[user_id].last_sync_at = synced_at


class MemoryRuns:
    """SyncRuns across all users."""

    def __init__(self) -> None:
        self.runs: list[StoredRun] = []

    async def start(self, user_id: uuid.UUID, sync_type: str) -> StoredRun:
        run = StoredRun(id=uuid.uuid4(), user_id=user_id)
        self.runs.append(run)
        return run

    def _running(self, run_id: uuid.UUID) -> StoredRun | None:
        return next((r for r in self.runs if r.id == run_id and r.status == "running"), None)

    async def complete(
        self,
        run_id: uuid.UUID,
        emails_fetched: int,
        emails_processed: int,
        items_created: int,
    ) -> bool:
        run = self._running(run_id)
        if run is None:
            return False
        run.status = "success"
        run.items_created = items_created
        return True

    async def fail(self, run_id: uuid.UUID, error_message: str) -> bool:
        run = self._running(run_id)
        if run is None:
            return False
        run.status = "failed"
        run.error_message = error_message
        return True


@dataclass
class MemoryItems:
    """Stored items across all users."""

    items: list[Item] = field(default_factory=list)

    async def create_many(self, items: Sequence[Item]) -> list[Item]:
        self.items.extend(items)
        return list(items)

    async def find_existing_email_ids(
        self, user_id: uuid.UUID, email_ids: Sequence[str]
    ) -> set[str]:
        return set()


class Mailboxes:
    """One message per user; a user mapped to an exception fails the fetch."""

    def __init__(self, outcomes: dict[uuid.UUID, str | Exception]) -> None:
        self.outcomes = outcomes

    async def fetch_recent_messages(
        self, user_id: uuid.UUID, lookback_days: int, max_results: int = 50
    ) -> list[dict[str, Any]]:
        outcome = self.outcomes[user_id]
        if isinstance(outcome, Exception):
            raise outcome
        body = base64.urlsafe_b64encode(b"Please review").decode()
        return [
            {
                "id": f"msg-{user_id}",
                "threadId": "t1",
                "internalDate": "1767261600000",
                "payload": {
                    "mimeType": "text/plain",
                    "headers": [{"name": "Subject", "value": outcome}],
                    "body": {"data": body},
                },
            }
        ]


class SubjectTaskExtractor:
    """Turns every email into one task titled after its subject."""

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        return ExtractionResult(
            items=[
                ExtractedTask(type="task", title=request.subject, priority="high", confidence=0.9)
            ]
        )


class TestSweepWithRealSyncService:
    """Sweep over real SyncService instances backed by in-memory stores."""

    @pytest.mark.asyncio
    async def test_failing_user_leaves_every_run_terminal(self, eligible: AsyncMock) -> None:
        """Test user #2's mailbox failing yields 2 successes, 1 failure, no running runs."""
        profiles = MemoryProfiles(USERS)
        runs = MemoryRuns()
        items = MemoryItems()
        mail = Mailboxes(
            {
                USERS[0]: "Review contract",
                USERS[1]: MailFetchError("Gmail unavailable"),
                USERS[2]: "Pay invoice",
            }
        )

        def build(session: Any) -> SyncService:
            return SyncService(
                session,
                mail,  # type: ignore[arg-type]
                SubjectTaskExtractor(),
                items=items,  # type: ignore[arg-type]
                runs=runs,  # type: ignore[arg-type]
                profiles=profiles,  # type: ignore[arg-type]
            )

        sweeper = ScheduledSyncService(
            _async_session_factory, build, inter_user_delay_seconds=0, sleep=AsyncMock()
        )

        report = await sweeper.run_sweep()

        assert report.successful == 2
        assert report.failed == 1
        assert report.total_items_extracted == 2
        assert len(runs.runs) == 3
        assert {run.status for run in runs.runs} <= {"success", "failed"}
        statuses = {run.user_id: run.status for run in runs.runs}
        assert statuses == {USERS[0]: "success", USERS[1]: "failed", USERS[2]: "success"}
        assert sorted(item.title for item in items.items) == ["Pay invoice", "Review contract"]
        assert not any(profile.locked for profile in profiles.profiles.values())
        assert profiles.profiles[USERS[1]].last_sync_at is None
