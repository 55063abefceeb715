"""Gmail implementation of the mail provider interface."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

import structlog

from neriah.auth.google import OAuthError
from neriah.integrations.gmail.client import GmailApiError, GmailClient
from neriah.integrations.gmail.models import AttachmentData
from neriah.integrations.gmail.parser import extract_attachments
from neriah.providers.base import (
    GENERIC_MIME_TYPE,
    AttachmentNotFoundError,
    MailAuthorizationError,
    MailFetchError,
    MailProvider,
    RawMessage,
)
from neriah.services.auth_service import AuthService, TokenNotFoundError

if TYPE_CHECKING:
    from uuid import UUID

logger = structlog.get_logger(__name__)

ClientFactory = Callable[[str], GmailClient]

DEFAULT_ATTACHMENT_NAME = "attachment"


def build_recent_query(lookback_days: int, now: datetime | None = None) -> str:
    """Build the Gmail search query for the primary inbox since N days ago."""
    now = now or datetime.now(UTC)
    since = now - timedelta(days=max(1, lookback_days))
    return f"category:primary after:{int(since.timestamp())}"


class GmailMailProvider(MailProvider):
    """Reads a user's Gmail using their stored OAuth credentials."""

    def __init__(
        self,
        auth_service: AuthService,
        client_factory: ClientFactory = GmailClient,
    ) -> None:
        """Initialize provider.

        Args:
            auth_service: Issues valid access tokens per user.
            client_factory: Builds a GmailClient from an access token.
        """
        self.auth_service = auth_service
        self.client_factory = client_factory

    async def _client_for(self, user_id: UUID) -> GmailClient:
        try:
            token = await self.auth_service.get_valid_token(user_id)
        except (TokenNotFoundError, OAuthError) as e:
            raise MailAuthorizationError(str(e)) from e
        return self.client_factory(token)

    async def fetch_recent_messages(
        self,
        user_id: UUID,
        lookback_days: int,
        max_results: int = 50,
    ) -> list[RawMessage]:
        """Fetch full messages from the primary category within the window.

        Messages deleted between listing and fetching are skipped; any other
        per-message failure aborts the fetch.

        Raises:
            MailAuthorizationError: If credentials are missing or refresh fails.
            MailFetchError: If the Gmail API fails.
        """
        query = build_recent_query(lookback_days)
        async with await self._client_for(user_id) as client:
            try:
                refs, _ = await client.list_messages(max_results=max_results, query=query)
            except GmailApiError as e:
                raise MailFetchError(f"Failed to list messages: {e.message}") from e

            await logger.ainfo(
                "gmail_messages_listed",
                user_id=str(user_id),
                count=len(refs),
                lookback_days=lookback_days,
            )
            if not refs:
                return []

            results = await client.batch_get_messages(refs)

        messages: list[RawMessage] = []
        for ref, result in zip(refs, results, strict=True):
            if isinstance(result, GmailApiError):
                if result.is_not_found:
                    await logger.awarning(
                        "gmail_message_vanished", user_id=str(user_id), message_id=ref.id
                    )
                    continue
                raise MailFetchError(f"Failed to fetch message {ref.id}: {result.message}")
            messages.append(result)
        return messages

    async def download_attachment(
        self,
        user_id: UUID,
        message_id: str,
        attachment_id: str,
    ) -> AttachmentData:
        """Download an attachment along with its filename and MIME type.

        Gmail may hand out a different ``attachmentId`` on every message read,
        so the stored ID is used for the download as-is and the message parts
        only supply metadata. Without a matching part the file is named
        ``attachment`` with a generic content type.
        """
        async with await self._client_for(user_id) as client:
            try:
                body = await client.get_attachment(message_id, attachment_id)
                message = await client.get_message(message_id)
            except GmailApiError as e:
                if e.is_not_found:
                    raise AttachmentNotFoundError(message_id, attachment_id) from e
                raise MailFetchError(f"Failed to download attachment: {e.message}") from e

        info = next(
            (
                a
                for a in extract_attachments(message.get("payload") or {})
                if a.attachment_id == attachment_id
            ),
            None,
        )
        if info is None:
            await logger.ainfo(
                "gmail_attachment_part_unmatched",
                user_id=str(user_id),
                message_id=message_id,
            )
            return AttachmentData(
                filename=DEFAULT_ATTACHMENT_NAME,
                mime_type=GENERIC_MIME_TYPE,
                size=int(body.get("size") or 0),
                data=str(body.get("data") or ""),
            )

        return AttachmentData(
            filename=info.filename,
            mime_type=info.mime_type,
            size=int(body.get("size") or info.size),
            data=str(body.get("data") or ""),
        )
