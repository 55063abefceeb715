"""Tests for the application factory."""

from __future__ import annotations

from fastapi.testclient import TestClient

from neriah.api.config import APIConfig
from neriah.api.main import create_app


class TestCreateApp:
    """Tests for create_app."""

    def test_registers_routes(self) -> None:
        """Test every router is mounted."""
        app = create_app(APIConfig(log_level="WARNING"))
        paths = {getattr(route, "path", "") for route in app.routes}

        assert {
            "/health",
            "/ready",
            "/extract/initial",
            "/extract/sync",
            "/webhooks/cron",
            "/items",
            "/items/{item_id}",
            "/attachments/{item_id}/{attachment_id}",
            "/sync/runs",
            "/sync/data",
            "/chat/query",
            "/chat/calculate",
        } <= paths

    def test_docs_only_in_development(self) -> None:
        """Test API docs are hidden outside development."""
        dev = create_app(APIConfig(environment="development", log_level="WARNING"))
        prod = create_app(APIConfig(environment="production", log_level="WARNING"))

        assert dev.docs_url == "/docs"
        assert prod.docs_url is None

    def test_cors_preflight(self) -> None:
        """Test configured origins pass the CORS preflight."""
        app = create_app(APIConfig(cors_origins=["https://app.example.com"], log_level="WARNING"))

        response = TestClient(app).options(
            "/health",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "GET",
            },
        )

        assert response.headers["access-control-allow-origin"] == "https://app.example.com"
