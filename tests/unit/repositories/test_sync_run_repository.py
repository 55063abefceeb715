"""Tests for sync run repository."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from neriah.models.sync_run import SyncRun
from neriah.repositories.sync_run import SyncRunRepository


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create a mock async session."""
    session = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def repository(mock_session: AsyncMock) -> SyncRunRepository:
    """Create repository with mock session."""
    return SyncRunRepository(mock_session)


class TestSyncRunRepository:
    """Tests for SyncRunRepository."""

    @pytest.mark.asyncio
    async def test_start(self, repository: SyncRunRepository, mock_session: AsyncMock) -> None:
        """Test a new run starts in the running state."""
        user_id = uuid.uuid4()

        run = await repository.start(user_id, "manual")

        mock_session.add.assert_called_once_with(run)
        mock_session.commit.assert_awaited_once()
        assert isinstance(run, SyncRun)
        assert run.user_id == user_id
        assert run.sync_type == "manual"
        assert run.status == "running"
        assert run.started_at is not None

    @pytest.mark.asyncio
    async def test_complete_transitions_once(
        self, repository: SyncRunRepository, mock_session: AsyncMock
    ) -> None:
        """Test completion reports whether the guarded update matched."""
        mock_session.execute.side_effect = [MagicMock(rowcount=1), MagicMock(rowcount=0)]
        run_id = uuid.uuid4()

        first = await repository.complete(
            run_id, emails_fetched=3, emails_processed=2, items_created=4
        )
        second = await repository.complete(
            run_id, emails_fetched=3, emails_processed=2, items_created=4
        )

        assert first is True
        assert second is False

    @pytest.mark.asyncio
    async def test_fail(self, repository: SyncRunRepository, mock_session: AsyncMock) -> None:
        """Test failing a running run."""
        mock_session.execute.return_value = MagicMock(rowcount=1)

        assert await repository.fail(uuid.uuid4(), "Gmail unavailable") is True
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_fail_terminal_run(
        self, repository: SyncRunRepository, mock_session: AsyncMock
    ) -> None:
        """Test failing an already closed run is a no-op."""
        mock_session.execute.return_value = MagicMock(rowcount=0)

        assert await repository.fail(uuid.uuid4(), "late") is False

    @pytest.mark.asyncio
    async def test_list_by_user(
        self, repository: SyncRunRepository, mock_session: AsyncMock
    ) -> None:
        """Test listing recent runs."""
        runs = [SyncRun(id=uuid.uuid4()), SyncRun(id=uuid.uuid4())]
        mock_result = MagicMock()
        mock_result.scalars.return_value.all.return_value = runs
        mock_session.execute.return_value = mock_result

        assert await repository.list_by_user(uuid.uuid4(), limit=2) == runs

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(
        self, repository: SyncRunRepository, mock_session: AsyncMock
    ) -> None:
        """Test a missing run returns None."""
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        mock_session.execute.return_value = mock_result

        assert await repository.get_by_id(uuid.uuid4()) is None
