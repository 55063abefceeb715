"""Data types for Gmail messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class GmailMessageRef:
    """Reference to a Gmail message returned by ``messages.list``.

    Attributes:
        id: Gmail message ID.
        thread_id: Gmail thread ID.
    """

    id: str
    thread_id: str


@dataclass(frozen=True, slots=True)
class AttachmentInfo:
    """Metadata for one attachment on a message.

    Attributes:
        filename: Original file name.
        mime_type: MIME type reported by Gmail.
        size: Size in bytes.
        attachment_id: Gmail attachment ID, used for download.
    """

    filename: str
    mime_type: str
    size: int
    attachment_id: str


@dataclass(slots=True)
class ParsedEmail:
    """Provider-independent view of an email.

    Attributes:
        message_id: Gmail message ID.
        thread_id: Gmail thread ID.
        from_: Raw From header.
        to: Raw To header.
        subject: Subject header.
        date: Raw Date header.
        snippet: Short preview text from Gmail.
        body: Plain-text body (HTML or snippet when no text part exists).
        has_attachments: True when at least one attachment was found.
        attachments: Attachments found in the message parts.
        internal_date: Gmail's receive timestamp.
    """

    message_id: str
    thread_id: str
    from_: str
    to: str
    subject: str
    date: str
    snippet: str
    body: str
    internal_date: datetime
    attachments: list[AttachmentInfo] = field(default_factory=list)

    @property
    def has_attachments(self) -> bool:
        """Check if the message carries attachments."""
        return bool(self.attachments)

    @property
    def attachment_ids(self) -> list[str]:
        """Gmail attachment IDs in part order."""
        return [a.attachment_id for a in self.attachments]


@dataclass(frozen=True, slots=True)
class AttachmentData:
    """Downloaded attachment content.

    Attributes:
        filename: Original file name.
        mime_type: MIME type.
        size: Size in bytes.
        data: Content as URL-safe base64, exactly as Gmail returns it.
    """

    filename: str
    mime_type: str
    size: int
    data: str
