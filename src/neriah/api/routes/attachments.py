"""Attachment download endpoint."""

from __future__ import annotations

from urllib.parse import quote
from uuid import UUID

from fastapi import APIRouter, Response

from neriah.api.auth.dependencies import CurrentUser
from neriah.api.database import SessionDep
from neriah.api.dependencies import MailProviderDep
from neriah.services.attachment_service import AttachmentService

router = APIRouter(prefix="/attachments", tags=["attachments"])


@router.get("/{item_id}/{attachment_id}", response_class=Response)
async def download_attachment(
    item_id: UUID,
    attachment_id: str,
    user: CurrentUser,
    session: SessionDep,
    mail_provider: MailProviderDep,
) -> Response:
    """Download an attachment of the email behind an item."""
    attachment = await AttachmentService(session, mail_provider).get_attachment(
        item_id, attachment_id, user.id
    )
    filename = quote(attachment.filename or "attachment")
    return Response(
        content=attachment.content,
        media_type=attachment.mime_type or "application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{filename}"},
    )
