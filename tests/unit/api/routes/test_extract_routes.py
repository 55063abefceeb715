"""Tests for extraction trigger endpoints."""

from __future__ import annotations

import uuid
from unittest import mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from neriah.api.auth.dependencies import get_current_user
from neriah.api.auth.tokens import AuthUser
from neriah.api.dependencies import get_sync_service
from neriah.api.middleware.errors import setup_error_handlers
from neriah.api.routes.extract import router
from neriah.providers.base import MailFetchError
from neriah.services.sync_policy import SyncMode
from neriah.services.sync_service import (
    EligibilityError,
    PersistenceError,
    ProfileNotFoundError,
    SyncInProgressError,
    SyncResult,
)

USER = AuthUser(id=uuid.UUID("550e8400-e29b-41d4-a716-446655440000"))


@pytest.fixture
def sync_service() -> mock.MagicMock:
    """Create a mock SyncService."""
    service = mock.MagicMock()
    service.run_initial = mock.AsyncMock()
    service.run_manual = mock.AsyncMock()
    return service


@pytest.fixture
def client(sync_service: mock.MagicMock) -> TestClient:
    """Create a test client with the sync service overridden."""
    app = FastAPI()
    setup_error_handlers(app)
    app.include_router(router)

    async def override_user() -> AuthUser:
        return USER

    app.dependency_overrides[get_current_user] = override_user
    app.dependency_overrides[get_sync_service] = lambda: sync_service
    return TestClient(app, raise_server_exceptions=False)


class TestInitialExtraction:
    """Tests for POST /extract/initial."""

    def test_success_uses_camel_case(
        self, client: TestClient, sync_service: mock.MagicMock
    ) -> None:
        """Test the response body keys match the web client."""
        sync_service.run_initial.return_value = SyncResult(
            run_id=uuid.uuid4(),
            mode=SyncMode.INITIAL,
            emails_fetched=5,
            emails_processed=5,
            items_created=3,
        )

        response = client.post("/extract/initial")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Extracted 3 items from 5 emails",
            "emailsFetched": 5,
            "emailsProcessed": 5,
            "itemsCreated": 3,
        }
        sync_service.run_initial.assert_awaited_once_with(USER.id)

    def test_already_completed(self, client: TestClient, sync_service: mock.MagicMock) -> None:
        """Test a repeated initial extraction is a 400."""
        sync_service.run_initial.side_effect = EligibilityError(
            "Initial extraction already completed"
        )

        response = client.post("/extract/initial")

        assert response.status_code == 400
        assert response.json() == {
            "error": "not_eligible",
            "message": "Initial extraction already completed",
        }

    def test_missing_profile(self, client: TestClient, sync_service: mock.MagicMock) -> None:
        """Test an unknown user is a 404, not a generic 400."""
        sync_service.run_initial.side_effect = ProfileNotFoundError(USER.id)

        response = client.post("/extract/initial")

        assert response.status_code == 404
        assert response.json()["error"] == "profile_not_found"


class TestManualSync:
    """Tests for POST /extract/sync."""

    def test_nothing_new(self, client: TestClient, sync_service: mock.MagicMock) -> None:
        """Test a sync with nothing new still succeeds."""
        sync_service.run_manual.return_value = SyncResult(
            run_id=uuid.uuid4(), mode=SyncMode.MANUAL, emails_fetched=4
        )

        response = client.post("/extract/sync")

        assert response.status_code == 200
        assert response.json()["message"] == "No new emails to process"
        assert response.json()["itemsCreated"] == 0

    def test_concurrent_sync(self, client: TestClient, sync_service: mock.MagicMock) -> None:
        """Test a running sync yields 409."""
        sync_service.run_manual.side_effect = SyncInProgressError(USER.id)

        response = client.post("/extract/sync")

        assert response.status_code == 409
        assert response.json()["error"] == "sync_in_progress"

    def test_mail_provider_failure(
        self, client: TestClient, sync_service: mock.MagicMock
    ) -> None:
        """Test mailbox failures surface as a server-side error."""
        sync_service.run_manual.side_effect = MailFetchError("Failed to list messages")

        response = client.post("/extract/sync")

        assert response.status_code == 502
        assert response.json()["error"] == "mail_provider_error"

    def test_persistence_failure(self, client: TestClient, sync_service: mock.MagicMock) -> None:
        """Test storage failures are a 500."""
        sync_service.run_manual.side_effect = PersistenceError("Failed to store 2 items")

        response = client.post("/extract/sync")

        assert response.status_code == 500
        assert response.json()["error"] == "persistence_error"

    def test_unexpected_failure(self, client: TestClient, sync_service: mock.MagicMock) -> None:
        """Test anything else is a generic 500 in the same error shape."""
        sync_service.run_manual.side_effect = RuntimeError("boom")

        response = client.post("/extract/sync")

        assert response.status_code == 500
        assert response.json() == {"error": "internal_error", "message": "boom"}
