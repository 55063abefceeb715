"""Attachment download for items that came from emails with attachments."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.providers.base import (
    GENERIC_MIME_TYPE,
    AttachmentNotFoundError,
    MailProvider,
    MailProviderError,
)
from neriah.repositories.item import ItemRepository
from neriah.services.item_service import ItemNotFoundError

logger = structlog.get_logger(__name__)

# (mime type, extension, [(offset, magic bytes), ...]); every pair must match.
_SIGNATURES: tuple[tuple[str, str, tuple[tuple[int, bytes], ...]], ...] = (
    ("application/pdf", ".pdf", ((0, b"%PDF"),)),
    ("image/png", ".png", ((0, b"\x89PNG"),)),
    ("image/jpeg", ".jpg", ((0, b"\xff\xd8\xff"),)),
    ("image/gif", ".gif", ((0, b"GIF8"),)),
    ("image/webp", ".webp", ((0, b"RIFF"), (8, b"WEBP"))),
    ("application/zip", ".zip", ((0, b"PK\x03\x04"),)),
    ("application/msword", ".doc", ((0, b"\xd0\xcf\x11\xe0"),)),
)


def sniff_file_type(content: bytes) -> tuple[str, str] | None:
    """Detect a file's MIME type and extension from its leading bytes.

    Args:
        content: File bytes.

    Returns:
        ``(mime_type, extension)``, or None when no known signature matches.
    """
    for mime_type, extension, checks in _SIGNATURES:
        if all(content[offset : offset + len(magic)] == magic for offset, magic in checks):
            return mime_type, extension
    return None


def resolve_file_type(filename: str, mime_type: str, content: bytes) -> tuple[str, str]:
    """Replace generic attachment metadata with what the bytes say.

    Only applies when the provider reported a generic content type or a
    filename without an extension. A detected extension is appended to
    filenames that lack one.

    Returns:
        ``(filename, mime_type)``.
    """
    if mime_type != GENERIC_MIME_TYPE and "." in filename:
        return filename, mime_type
    detected = sniff_file_type(content)
    if detected is None:
        return filename, mime_type
    detected_type, extension = detected
    if "." not in filename:
        filename += extension
    return filename, detected_type


@dataclass(frozen=True)
class AttachmentFile:
    """Decoded attachment ready to stream.

    Attributes:
        filename: Original file name.
        mime_type: Content type.
        content: Raw bytes.
    """

    filename: str
    mime_type: str
    content: bytes


class AttachmentService:
    """Fetches attachments for the emails behind a user's items."""

    def __init__(self, session: AsyncSession, mail_provider: MailProvider) -> None:
        """Initialize service.

        Args:
            session: Async SQLAlchemy session.
            mail_provider: Provider that can download attachments.
        """
        self._items = ItemRepository(session)
        self._mail = mail_provider

    async def get_attachment(
        self, item_id: UUID, attachment_id: str, user_id: UUID
    ) -> AttachmentFile:
        """Download an attachment referenced by one of the user's items.

        Args:
            item_id: Item the attachment belongs to.
            attachment_id: Gmail attachment ID listed on the item.
            user_id: Requesting user.

        Returns:
            Decoded attachment.

        Raises:
            ItemNotFoundError: If the item does not exist for this user.
            AttachmentNotFoundError: If the item does not list the attachment.
            MailProviderError: If the provider returns undecodable data.
        """
        item = await self._items.get_by_id(item_id, user_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        if attachment_id not in (item.attachment_ids or []):
            raise AttachmentNotFoundError(item.email_id, attachment_id)

        data = await self._mail.download_attachment(user_id, item.email_id, attachment_id)
        padded = data.data + "=" * (-len(data.data) % 4)
        try:
            content = base64.urlsafe_b64decode(padded)
        except (binascii.Error, ValueError) as e:
            raise MailProviderError(f"Attachment {attachment_id} data is not base64") from e

        filename, mime_type = resolve_file_type(data.filename, data.mime_type, content)

        await logger.ainfo(
            "attachment_downloaded",
            item_id=str(item_id),
            user_id=str(user_id),
            size=len(content),
            mime_type=mime_type,
        )
        return AttachmentFile(filename=filename, mime_type=mime_type, content=content)
