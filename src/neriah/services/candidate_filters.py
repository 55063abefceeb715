"""Confidence filtering and deduplication of extraction candidates."""

from __future__ import annotations

from collections.abc import Collection, Sequence
from typing import TYPE_CHECKING

from neriah.schemas.extraction import ExtractedItem, ExtractedReceipt

if TYPE_CHECKING:
    from neriah.integrations.gmail.models import ParsedEmail


def filter_by_confidence(items: Sequence[ExtractedItem], threshold: float) -> list[ExtractedItem]:
    """Keep candidates whose confidence is at or above the threshold.

    Args:
        items: Candidates for one email.
        threshold: Minimum confidence, inclusive.

    Returns:
        Surviving candidates in original order.
    """
    return [item for item in items if item.confidence >= threshold]


def candidate_key(item: ExtractedItem) -> tuple[str, str]:
    """Composite identity of a candidate within one email: (type, title or vendor)."""
    if isinstance(item, ExtractedReceipt):
        return item.type, item.vendor or ""
    return item.type, item.title or ""


def dedupe_candidates(items: Sequence[ExtractedItem]) -> list[ExtractedItem]:
    """Collapse candidates of one email that share type and title/vendor.

    The first occurrence wins. Candidates of different types are never
    merged, so a meeting invite can still yield a meeting and a reply task.
    """
    seen: set[tuple[str, str]] = set()
    unique = []
    for item in items:
        key = candidate_key(item)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def select_unprocessed(
    emails: Sequence[ParsedEmail], processed_ids: Collection[str]
) -> list[ParsedEmail]:
    """Drop emails that already produced items in an earlier run.

    Duplicate message ids within the batch are also collapsed.

    Args:
        emails: Normalized emails from this fetch.
        processed_ids: Message ids with at least one persisted item.

    Returns:
        Emails still worth sending to the extractor.
    """
    seen = set(processed_ids)
    fresh = []
    for email in emails:
        if email.message_id in seen:
            continue
        seen.add(email.message_id)
        fresh.append(email)
    return fresh
