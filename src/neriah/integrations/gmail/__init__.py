"""Gmail API integration."""

from neriah.integrations.gmail.client import GmailApiError, GmailClient
from neriah.integrations.gmail.models import (
    AttachmentData,
    AttachmentInfo,
    GmailMessageRef,
    ParsedEmail,
)
from neriah.integrations.gmail.parser import parse_message, split_sender
from neriah.integrations.gmail.rate_limiter import RateLimiter

__all__ = [
    "AttachmentData",
    "AttachmentInfo",
    "GmailApiError",
    "GmailClient",
    "GmailMessageRef",
    "ParsedEmail",
    "RateLimiter",
    "parse_message",
    "split_sender",
]
