"""Tests for item API endpoints."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Iterator
from datetime import UTC, datetime
from unittest import mock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from neriah.api.auth.dependencies import get_current_user
from neriah.api.auth.tokens import AuthUser
from neriah.api.database import get_session
from neriah.api.middleware.errors import setup_error_handlers
from neriah.api.routes.items import router
from neriah.schemas.item import ItemListResponse, ItemResponse, ItemStatsResponse
from neriah.services.item_service import InvalidSnoozeError, ItemNotFoundError

USER = AuthUser(id=uuid.UUID("550e8400-e29b-41d4-a716-446655440000"), email="test@example.com")


def make_response(**overrides: object) -> ItemResponse:
    """Build an item response."""
    fields: dict[str, object] = {
        "id": uuid.uuid4(),
        "email_id": "msg-1",
        "category": "task",
        "priority": "high",
        "status": "pending",
        "title": "Reply to Sam",
        "confidence": 0.9,
        "email_date": datetime(2026, 3, 1, tzinfo=UTC),
        "created_at": datetime(2026, 3, 1, 1, tzinfo=UTC),
    }
    fields.update(overrides)
    return ItemResponse.model_validate(fields)


@pytest.fixture
def app() -> FastAPI:
    """Create a test FastAPI app."""
    app = FastAPI()
    setup_error_handlers(app)
    app.include_router(router)

    async def override_user() -> AuthUser:
        return USER

    async def override_session() -> AsyncGenerator[mock.MagicMock, None]:
        yield mock.MagicMock()

    app.dependency_overrides[get_current_user] = override_user
    app.dependency_overrides[get_session] = override_session
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create a test client."""
    return TestClient(app)


@pytest.fixture
def service() -> Iterator[mock.MagicMock]:
    """Patch the ItemService used by the routes."""
    with mock.patch("neriah.api.routes.items.ItemService") as MockService:
        yield MockService.return_value


class TestListItems:
    """Tests for GET /items."""

    def test_list(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test listing items with filters."""
        service.list_items = mock.AsyncMock(
            return_value=ItemListResponse(
                items=[make_response()], total=1, limit=10, offset=0, has_more=False
            )
        )

        params = {"status": "pending", "category": "task", "limit": 10}
        response = client.get("/items", params=params)

        assert response.status_code == 200
        assert response.json()["total"] == 1
        service.list_items.assert_awaited_once_with(
            USER.id, status="pending", category="task", limit=10, offset=0
        )

    def test_invalid_status(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test unknown status values are rejected."""
        response = client.get("/items", params={"status": "archived"})

        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    def test_limit_bounds(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test the page size is capped."""
        assert client.get("/items", params={"limit": 201}).status_code == 422

    def test_stats(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test the stats route is not captured by the item-id route."""
        service.get_stats = mock.AsyncMock(return_value=ItemStatsResponse(pending=2))

        response = client.get("/items/stats")

        assert response.status_code == 200
        assert response.json()["pending"] == 2


class TestItemActions:
    """Tests for single-item endpoints."""

    def test_get_not_found(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test a missing item returns 404."""
        item_id = uuid.uuid4()
        service.get_item = mock.AsyncMock(side_effect=ItemNotFoundError(item_id))

        response = client.get(f"/items/{item_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "item_not_found"

    def test_complete(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test completing an item."""
        item = make_response(status="completed")
        service.complete_item = mock.AsyncMock(return_value=item)

        response = client.post(f"/items/{item.id}/complete")

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        service.complete_item.assert_awaited_once_with(item.id, USER.id)

    def test_snooze(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test snoozing passes the parsed time."""
        item = make_response(status="snoozed")
        service.snooze_item = mock.AsyncMock(return_value=item)

        response = client.post(
            f"/items/{item.id}/snooze", json={"until": "2030-01-01T09:00:00Z"}
        )

        assert response.status_code == 200
        until = service.snooze_item.await_args.args[2]
        assert until == datetime(2030, 1, 1, 9, tzinfo=UTC)

    def test_snooze_in_past(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test the service's snooze rejection maps to 422."""
        service.snooze_item = mock.AsyncMock(
            side_effect=InvalidSnoozeError("Snooze time must be in the future")
        )

        response = client.post(
            f"/items/{uuid.uuid4()}/snooze", json={"until": "2020-01-01T00:00:00Z"}
        )

        assert response.status_code == 422
        assert response.json()["error"] == "invalid_snooze"

    def test_feedback(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test submitting feedback."""
        item = make_response(user_feedback="negative")
        service.submit_feedback = mock.AsyncMock(return_value=item)

        response = client.post(
            f"/items/{item.id}/feedback", json={"feedback": "negative", "comment": "not a task"}
        )

        assert response.status_code == 200
        service.submit_feedback.assert_awaited_once_with(
            item.id, USER.id, "negative", "not a task"
        )

    def test_feedback_invalid_value(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test unknown feedback values are rejected."""
        response = client.post(f"/items/{uuid.uuid4()}/feedback", json={"feedback": "meh"})

        assert response.status_code == 422

    def test_restore_and_delete(self, client: TestClient, service: mock.MagicMock) -> None:
        """Test restore and soft delete."""
        item = make_response()
        service.restore_item = mock.AsyncMock(return_value=item)
        service.delete_item = mock.AsyncMock(return_value=make_response(status="deleted"))

        assert client.post(f"/items/{item.id}/restore").status_code == 200
        deleted = client.delete(f"/items/{item.id}")

        assert deleted.status_code == 200
        assert deleted.json()["status"] == "deleted"
