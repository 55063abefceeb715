"""Tests for the Gmail mail provider."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from neriah.auth.google import OAuthError
from neriah.integrations.gmail.client import GmailApiError
from neriah.integrations.gmail.models import GmailMessageRef
from neriah.providers.base import (
    AttachmentNotFoundError,
    MailAuthorizationError,
    MailFetchError,
)
from neriah.providers.gmail import GmailMailProvider, build_recent_query
from neriah.services.auth_service import TokenNotFoundError

USER_ID = uuid.uuid4()


@pytest.fixture
def client() -> MagicMock:
    """Create a mock GmailClient usable as an async context manager."""
    client = MagicMock()
    client.__aenter__.return_value = client
    client.list_messages = AsyncMock()
    client.batch_get_messages = AsyncMock()
    client.get_message = AsyncMock()
    client.get_attachment = AsyncMock()
    return client


@pytest.fixture
def auth_service() -> AsyncMock:
    """Create a mock AuthService."""
    service = AsyncMock()
    service.get_valid_token.return_value = "access-token"
    return service


@pytest.fixture
def factory(client: MagicMock) -> MagicMock:
    """Client factory returning the mock client."""
    return MagicMock(return_value=client)


@pytest.fixture
def provider(auth_service: AsyncMock, factory: MagicMock) -> GmailMailProvider:
    """Create provider with mocked collaborators."""
    return GmailMailProvider(auth_service, client_factory=factory)


class TestBuildRecentQuery:
    """Tests for build_recent_query."""

    def test_primary_since_window(self) -> None:
        """Test the query targets the primary category after the window start."""
        now = datetime(2026, 3, 10, tzinfo=UTC)

        query = build_recent_query(2, now)

        expected = int(datetime(2026, 3, 8, tzinfo=UTC).timestamp())
        assert query == f"category:primary after:{expected}"

    def test_minimum_one_day(self) -> None:
        """Test a zero-day window is widened to one day."""
        now = datetime(2026, 3, 10, tzinfo=UTC)

        assert build_recent_query(0, now) == build_recent_query(1, now)


class TestFetchRecentMessages:
    """Tests for GmailMailProvider.fetch_recent_messages."""

    @pytest.mark.asyncio
    async def test_returns_messages_in_list_order(
        self, provider: GmailMailProvider, client: MagicMock, factory: MagicMock
    ) -> None:
        """Test fetched messages follow the listing order."""
        refs = [GmailMessageRef("m1", "t1"), GmailMessageRef("m2", "t2")]
        client.list_messages.return_value = (refs, None)
        client.batch_get_messages.return_value = [{"id": "m1"}, {"id": "m2"}]

        messages = await provider.fetch_recent_messages(USER_ID, 3, max_results=10)

        assert [m["id"] for m in messages] == ["m1", "m2"]
        factory.assert_called_once_with("access-token")
        kwargs = client.list_messages.await_args.kwargs
        assert kwargs["max_results"] == 10
        assert kwargs["query"].startswith("category:primary after:")

    @pytest.mark.asyncio
    async def test_empty_listing_skips_fetch(
        self, provider: GmailMailProvider, client: MagicMock
    ) -> None:
        """Test no batch fetch happens when nothing is listed."""
        client.list_messages.return_value = ([], None)

        assert await provider.fetch_recent_messages(USER_ID, 1) == []
        client.batch_get_messages.assert_not_called()

    @pytest.mark.asyncio
    async def test_vanished_message_skipped(
        self, provider: GmailMailProvider, client: MagicMock
    ) -> None:
        """Test a message deleted after listing is dropped."""
        refs = [GmailMessageRef("m1", "t1"), GmailMessageRef("m2", "t2")]
        client.list_messages.return_value = (refs, None)
        client.batch_get_messages.return_value = [
            GmailApiError("Not found", status_code=404),
            {"id": "m2"},
        ]

        messages = await provider.fetch_recent_messages(USER_ID, 1)

        assert [m["id"] for m in messages] == ["m2"]

    @pytest.mark.asyncio
    async def test_other_message_error_fails(
        self, provider: GmailMailProvider, client: MagicMock
    ) -> None:
        """Test non-404 per-message errors fail the fetch."""
        client.list_messages.return_value = ([GmailMessageRef("m1", "t1")], None)
        client.batch_get_messages.return_value = [GmailApiError("Backend", status_code=500)]

        with pytest.raises(MailFetchError):
            await provider.fetch_recent_messages(USER_ID, 1)

    @pytest.mark.asyncio
    async def test_list_error(self, provider: GmailMailProvider, client: MagicMock) -> None:
        """Test listing failures become MailFetchError."""
        client.list_messages.side_effect = GmailApiError("Rate limited", status_code=429)

        with pytest.raises(MailFetchError, match="Rate limited"):
            await provider.fetch_recent_messages(USER_ID, 1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [TokenNotFoundError(USER_ID), OAuthError("invalid_grant", "revoked")]
    )
    async def test_credentials_error(
        self,
        provider: GmailMailProvider,
        auth_service: AsyncMock,
        factory: MagicMock,
        error: Exception,
    ) -> None:
        """Test missing or revoked credentials become MailAuthorizationError."""
        auth_service.get_valid_token.side_effect = error

        with pytest.raises(MailAuthorizationError):
            await provider.fetch_recent_messages(USER_ID, 1)

        factory.assert_not_called()


class TestDownloadAttachment:
    """Tests for GmailMailProvider.download_attachment."""

    MESSAGE = {
        "id": "m1",
        "payload": {
            "parts": [
                {"mimeType": "text/plain", "body": {"data": ""}},
                {
                    "filename": "invoice.pdf",
                    "mimeType": "application/pdf",
                    "body": {"attachmentId": "att-1", "size": 2048},
                },
            ]
        },
    }

    @pytest.mark.asyncio
    async def test_download(self, provider: GmailMailProvider, client: MagicMock) -> None:
        """Test metadata comes from the message and data from the attachment call."""
        client.get_message.return_value = self.MESSAGE
        client.get_attachment.return_value = {"size": 2048, "data": "JVBERi0"}

        data = await provider.download_attachment(USER_ID, "m1", "att-1")

        assert data.filename == "invoice.pdf"
        assert data.mime_type == "application/pdf"
        assert data.size == 2048
        assert data.data == "JVBERi0"
        client.get_attachment.assert_awaited_once_with("m1", "att-1")

    @pytest.mark.asyncio
    async def test_rotated_attachment_id(
        self, provider: GmailMailProvider, client: MagicMock
    ) -> None:
        """Test a stored id that no longer matches a part still downloads the bytes."""
        client.get_message.return_value = {
            "id": "m1",
            "payload": {
                "parts": [
                    {
                        "filename": "invoice.pdf",
                        "mimeType": "application/pdf",
                        "body": {"attachmentId": "ANGjdJ-NEW", "size": 10},
                    }
                ]
            },
        }
        client.get_attachment.return_value = {"size": 7, "data": "JVBERi0"}

        data = await provider.download_attachment(USER_ID, "m1", "ANGjdJ-OLD")

        assert data.filename == "attachment"
        assert data.mime_type == "application/octet-stream"
        assert data.size == 7
        assert data.data == "JVBERi0"
        client.get_attachment.assert_awaited_once_with("m1", "ANGjdJ-OLD")

    @pytest.mark.asyncio
    async def test_attachment_gone(
        self, provider: GmailMailProvider, client: MagicMock
    ) -> None:
        """Test a 404 from the attachment call maps to AttachmentNotFoundError."""
        client.get_attachment.side_effect = GmailApiError("Not found", status_code=404)

        with pytest.raises(AttachmentNotFoundError):
            await provider.download_attachment(USER_ID, "m1", "att-1")

        client.get_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_message_gone(self, provider: GmailMailProvider, client: MagicMock) -> None:
        """Test a deleted message maps to AttachmentNotFoundError."""
        client.get_message.side_effect = GmailApiError("Not found", status_code=404)

        with pytest.raises(AttachmentNotFoundError):
            await provider.download_attachment(USER_ID, "m1", "att-1")

    @pytest.mark.asyncio
    async def test_api_failure(self, provider: GmailMailProvider, client: MagicMock) -> None:
        """Test other API errors map to MailFetchError."""
        client.get_message.side_effect = GmailApiError("Backend", status_code=500)

        with pytest.raises(MailFetchError):
            await provider.download_attachment(USER_ID, "m1", "att-1")
