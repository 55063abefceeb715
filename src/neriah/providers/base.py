"""Mail provider interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from uuid import UUID

    from neriah.integrations.gmail.models import AttachmentData

RawMessage = dict[str, Any]

GENERIC_MIME_TYPE = "application/octet-stream"


class MailProviderError(Exception):
    """Base exception for mail provider failures."""


class MailAuthorizationError(MailProviderError):
    """Raised when the user's mail credentials are missing or rejected."""


class MailFetchError(MailProviderError):
    """Raised when listing or fetching messages fails."""


class AttachmentNotFoundError(MailProviderError):
    """Raised when an attachment cannot be located on a message."""

    def __init__(self, message_id: str, attachment_id: str) -> None:
        self.message_id = message_id
        self.attachment_id = attachment_id
        super().__init__(f"Attachment {attachment_id} not found on message {message_id}")


class MailProvider(ABC):
    """Source of raw messages for the sync pipeline."""

    @abstractmethod
    async def fetch_recent_messages(
        self,
        user_id: UUID,
        lookback_days: int,
        max_results: int = 50,
    ) -> list[RawMessage]:
        """Fetch primary-inbox messages received within the lookback window.

        Args:
            user_id: User whose mailbox to read.
            lookback_days: Window size in whole days.
            max_results: Provider-side cap on messages listed.

        Returns:
            Raw provider messages, newest first.

        Raises:
            MailProviderError: If the mailbox cannot be read.
        """

    @abstractmethod
    async def download_attachment(
        self,
        user_id: UUID,
        message_id: str,
        attachment_id: str,
    ) -> AttachmentData:
        """Download one attachment.

        Raises:
            AttachmentNotFoundError: If the message has no such attachment.
            MailProviderError: If the provider call fails.
        """
