"""Tests for profile repository."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from neriah.models.profile import Profile
from neriah.repositories.profile import ProfileRepository

USER_ID = uuid.uuid4()


@pytest.fixture
def mock_session() -> AsyncMock:
    """Create a mock async session."""
    return AsyncMock()


@pytest.fixture
def repository(mock_session: AsyncMock) -> ProfileRepository:
    """Create repository with mock session."""
    return ProfileRepository(mock_session)


def _scalar(mock_session: AsyncMock, value: object) -> None:
    mock_result = MagicMock()
    mock_result.scalar_one_or_none.return_value = value
    mock_session.execute.return_value = mock_result


class TestProfileRepository:
    """Tests for ProfileRepository."""

    @pytest.mark.asyncio
    async def test_get(self, repository: ProfileRepository, mock_session: AsyncMock) -> None:
        """Test fetching a profile."""
        profile = Profile(id=USER_ID, email="u@example.com")
        _scalar(mock_session, profile)

        assert await repository.get(USER_ID) is profile
        statement = mock_session.execute.call_args.args[0]
        assert statement.get_execution_options()["populate_existing"] is True

    @pytest.mark.asyncio
    async def test_list_sync_eligible(
        self, repository: ProfileRepository, mock_session: AsyncMock
    ) -> None:
        """Test eligible user ids are returned as a list."""
        ids = [uuid.uuid4(), uuid.uuid4()]
        mock_result = MagicMock()
        mock_result.scalars.return_value.all.return_value = ids
        mock_session.execute.return_value = mock_result

        assert await repository.list_sync_eligible() == ids

    @pytest.mark.asyncio
    async def test_claim_sync_lock_success(
        self, repository: ProfileRepository, mock_session: AsyncMock
    ) -> None:
        """Test the claim succeeds when the guarded update returns a row."""
        _scalar(mock_session, USER_ID)

        assert await repository.claim_sync_lock(USER_ID, timedelta(minutes=15)) is True
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_claim_sync_lock_held(
        self, repository: ProfileRepository, mock_session: AsyncMock
    ) -> None:
        """Test the claim fails when another run holds an unexpired lease."""
        _scalar(mock_session, None)

        assert await repository.claim_sync_lock(USER_ID, timedelta(minutes=15)) is False

    @pytest.mark.asyncio
    async def test_release_sync_lock(
        self, repository: ProfileRepository, mock_session: AsyncMock
    ) -> None:
        """Test releasing issues an update and commits."""
        await repository.release_sync_lock(USER_ID)

        mock_session.execute.assert_awaited_once()
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mark_synced_initial(
        self, repository: ProfileRepository, mock_session: AsyncMock
    ) -> None:
        """Test initial completion is written alongside last_sync_at."""
        synced_at = datetime(2026, 3, 10, tzinfo=UTC)

        await repository.mark_synced(USER_ID, synced_at, initial_completed=True)

        statement = mock_session.execute.await_args.args[0]
        params = statement.compile().params
        assert params["last_sync_at"] == synced_at
        assert params["initial_extraction_completed"] is True

    @pytest.mark.asyncio
    async def test_mark_synced_regular(
        self, repository: ProfileRepository, mock_session: AsyncMock
    ) -> None:
        """Test a regular sync leaves the onboarding flag alone."""
        await repository.mark_synced(USER_ID, datetime(2026, 3, 10, tzinfo=UTC))

        statement = mock_session.execute.await_args.args[0]
        assert "initial_extraction_completed" not in statement.compile().params

    @pytest.mark.asyncio
    async def test_set_sync_enabled(
        self, repository: ProfileRepository, mock_session: AsyncMock
    ) -> None:
        """Test toggling the scheduled sweep."""
        profile = Profile(id=USER_ID, email="u@example.com", sync_enabled=True)
        _scalar(mock_session, profile)

        result = await repository.set_sync_enabled(USER_ID, False)

        assert result is profile
        assert profile.sync_enabled is False

    @pytest.mark.asyncio
    async def test_set_sync_enabled_missing(
        self, repository: ProfileRepository, mock_session: AsyncMock
    ) -> None:
        """Test toggling an unknown user returns None."""
        _scalar(mock_session, None)

        assert await repository.set_sync_enabled(USER_ID, True) is None
