"""Mail providers."""

from neriah.providers.base import (
    AttachmentNotFoundError,
    MailAuthorizationError,
    MailFetchError,
    MailProvider,
    MailProviderError,
    RawMessage,
)
from neriah.providers.gmail import GmailMailProvider, build_recent_query

__all__ = [
    "AttachmentNotFoundError",
    "GmailMailProvider",
    "MailAuthorizationError",
    "MailFetchError",
    "MailProvider",
    "MailProviderError",
    "RawMessage",
    "build_recent_query",
]
