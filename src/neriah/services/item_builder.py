"""Map extraction candidates onto persistable Item rows."""

from __future__ import annotations

from typing import TYPE_CHECKING

from neriah.integrations.gmail.parser import split_sender
from neriah.models.item import Item
from neriah.schemas.extraction import (
    ExtractedItem,
    ExtractedMeeting,
    ExtractedReceipt,
    ExtractedTask,
)

if TYPE_CHECKING:
    from uuid import UUID

    from neriah.integrations.gmail.models import ParsedEmail

DEFAULT_MEETING_MINUTES = 60

_PRIORITY_ALIASES = {
    "urgent": "urgent",
    "high": "high",
    "medium": "medium",
    "normal": "medium",
    "low": "low",
}


def normalize_priority(value: str | None) -> str:
    """Map a free-form priority token onto urgent/high/medium/low.

    Matching is case-insensitive; ``normal`` means ``medium`` and anything
    unrecognized or missing becomes ``medium``.
    """
    if not value:
        return "medium"
    return _PRIORITY_ALIASES.get(value.strip().lower(), "medium")


def _format_amount(amount: float) -> str:
    return str(int(amount)) if amount.is_integer() else str(amount)


def build_item(
    candidate: ExtractedItem,
    email: ParsedEmail,
    user_id: UUID,
    summary: str,
) -> Item:
    """Build an unsaved Item from one surviving candidate.

    Args:
        candidate: Filtered, deduplicated extraction candidate.
        email: Email the candidate came from.
        user_id: Owner of the item.
        summary: Extraction summary for the email, stored as notes.

    Returns:
        Item instance ready for insertion.
    """
    sender_name, sender_email = split_sender(email.from_)
    item = Item(
        user_id=user_id,
        email_id=email.message_id,
        status="pending",
        priority="medium",
        confidence=candidate.confidence,
        extraction_notes=summary,
        sender_name=sender_name,
        sender_email=sender_email,
        email_subject=email.subject,
        email_snippet=email.snippet,
        email_date=email.internal_date,
        has_attachment=email.has_attachments,
        attachment_ids=email.attachment_ids,
    )

    if isinstance(candidate, ExtractedTask):
        item.category = "task"
        item.title = candidate.title
        item.description = candidate.description
        item.priority = normalize_priority(candidate.priority)
    elif isinstance(candidate, ExtractedReceipt):
        item.category = "receipt"
        item.title = f"Receipt from {candidate.vendor}"
        item.description = f"{candidate.currency} {_format_amount(candidate.amount)}"
        item.receipt_category = candidate.category
        item.receipt_details = {
            "vendor": candidate.vendor,
            "amount": candidate.amount,
            "currency": candidate.currency,
            "date": candidate.date,
            "invoiceNumber": candidate.invoice_number,
        }
        if candidate.invoice_number:
            item.extraction_notes = f"{summary} | Invoice: {candidate.invoice_number}"
    elif isinstance(candidate, ExtractedMeeting):
        item.category = "meeting"
        item.title = candidate.title
        item.description = candidate.description
        item.meeting_details = {
            "attendees": list(candidate.attendees),
            "suggestedTimes": [candidate.date_time] if candidate.date_time else [],
            "durationMinutes": candidate.duration_minutes or DEFAULT_MEETING_MINUTES,
            "topic": candidate.title,
        }
    return item
