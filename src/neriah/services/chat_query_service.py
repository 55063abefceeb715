"""Answer dashboard chat questions from stored items.

Two kinds of questions are supported: "show me ..." searches over pending
items, and "how much did I spend ..." totals over pending receipts. Both are
answered by parsing the text into filters; no model is involved.
"""

from __future__ import annotations

import re
from collections import Counter, defaultdict
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.models.item import Item
from neriah.repositories.item import ItemRepository
from neriah.schemas.chat import (
    ChatItemsResponse,
    ChatSpendingResponse,
    GroupBy,
    ItemCard,
    ItemKind,
    SpendingBreakdown,
)
from neriah.services.query_parsing import parse_item_query, parse_spending_query

logger = structlog.get_logger(__name__)

DEFAULT_CURRENCY = "USD"
MAX_CARDS = 5

KIND_CATEGORIES: dict[str, tuple[str, ...]] = {
    "task": ("reply", "follow_up", "deadline", "review", "task"),
    "receipt": ("receipt", "invoice"),
    "meeting": ("meeting",),
}

ITEMS_FOUND = "Here are a few matches from your dashboard."
ITEMS_EMPTY = "I couldn't find any matching items. Try a different query."
SPEND_FOUND = "Here is the total spend for the selected period."
SPEND_MIXED = (
    "Here is the total spend for the selected period. "
    "Receipts in other currencies are totalled separately."
)
SPEND_EMPTY = "No receipts matched that query."

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def item_kind(category: str) -> ItemKind:
    """Card kind for an item category."""
    if category == "meeting":
        return "meeting"
    if category in KIND_CATEGORIES["receipt"]:
        return "receipt"
    return "task"


def parse_amount(value: Any) -> Decimal:
    """Read a receipt amount such as ``12.5``, ``"12.50"`` or ``"$1,299.00"``.

    Unreadable amounts count as zero.
    """
    if isinstance(value, bool) or value is None:
        return Decimal(0)
    if isinstance(value, int | float):
        return Decimal(str(value))
    match = _NUMBER.search(str(value).replace(",", ""))
    if not match:
        return Decimal(0)
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return Decimal(0)


def receipt_currency(item: Item) -> str:
    details = item.receipt_details or {}
    return str(details.get("currency") or DEFAULT_CURRENCY).upper()


def receipt_vendor(item: Item) -> str:
    details = item.receipt_details or {}
    return str(details.get("vendor") or item.sender_name or "Unknown vendor")


def _money(amount: Decimal) -> str:
    return f"{amount:.2f}"


def _group_label(item: Item, group_by: GroupBy) -> str:
    if group_by == "vendor":
        return receipt_vendor(item)
    if group_by == "month":
        return item.email_date.strftime("%b %Y")
    return (item.receipt_category or "other").replace("_", " ").title()


@dataclass
class SpendingSummary:
    """Totals over a set of receipts."""

    total: Decimal
    currency: str
    count: int
    by_currency: dict[str, Decimal] = field(default_factory=dict)
    breakdown: list[SpendingBreakdown] = field(default_factory=list)


def summarize_spending(
    receipts: Sequence[Item], group_by: GroupBy | None = None
) -> SpendingSummary:
    """Total receipt amounts per currency.

    The headline total is in the currency most receipts use; ties go to the
    larger amount. When currencies are mixed, breakdown labels carry the
    currency code so amounts are never summed across currencies.

    Args:
        receipts: Receipt or invoice items.
        group_by: Optional breakdown dimension.

    Returns:
        SpendingSummary with breakdown groups sorted by amount, largest first.
    """
    by_currency: dict[str, Decimal] = defaultdict(Decimal)
    counts: Counter[str] = Counter()
    for item in receipts:
        currency = receipt_currency(item)
        by_currency[currency] += parse_amount((item.receipt_details or {}).get("amount"))
        counts[currency] += 1

    if not counts:
        return SpendingSummary(total=Decimal(0), currency=DEFAULT_CURRENCY, count=0)

    currency = max(counts, key=lambda code: (counts[code], by_currency[code]))
    mixed = len(counts) > 1

    breakdown: list[SpendingBreakdown] = []
    if group_by is not None:
        groups: dict[str, Decimal] = defaultdict(Decimal)
        group_counts: Counter[str] = Counter()
        for item in receipts:
            label = _group_label(item, group_by)
            if mixed:
                label = f"{label} ({receipt_currency(item)})"
            groups[label] += parse_amount((item.receipt_details or {}).get("amount"))
            group_counts[label] += 1
        breakdown = [
            SpendingBreakdown(label=label, amount=_money(amount), count=group_counts[label])
            for label, amount in sorted(groups.items(), key=lambda pair: pair[1], reverse=True)
        ]

    return SpendingSummary(
        total=by_currency[currency],
        currency=currency,
        count=len(receipts),
        by_currency=dict(by_currency),
        breakdown=breakdown,
    )


def item_card(item: Item) -> ItemCard:
    """Card for a search result: priority and sender as the subtitle."""
    parts = [item.priority.capitalize()]
    sender = item.sender_name or item.sender_email
    if sender:
        parts.append(f"From {sender}")
    return ItemCard(
        id=item.id, title=item.title, subtitle=" · ".join(parts), kind=item_kind(item.category)
    )


def receipt_card(item: Item) -> ItemCard:
    """Card for a receipt: amount, category and date as the subtitle."""
    amount = parse_amount((item.receipt_details or {}).get("amount"))
    parts = [f"{receipt_currency(item)} {_money(amount)}"]
    if item.receipt_category:
        parts.append(item.receipt_category.replace("_", " ").title())
    parts.append(item.email_date.strftime("%b %d, %Y"))
    return ItemCard(
        id=item.id,
        title=f"Receipt from {receipt_vendor(item)}",
        subtitle=" · ".join(parts),
        kind="receipt",
    )


class ChatQueryService:
    """Service answering chat questions for one user's dashboard."""

    def __init__(
        self,
        session: AsyncSession,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize service with database session.

        Args:
            session: Async SQLAlchemy session.
            clock: Source of "now", for tests.
        """
        self._repo = ItemRepository(session)
        self._clock = clock or (lambda: datetime.now(UTC))

    async def query_items(self, user_id: UUID, text: str) -> ChatItemsResponse:
        """Search pending items with filters parsed from the question.

        Args:
            user_id: Owner.
            text: Free-text question.

        Returns:
            Up to five matching items as cards.
        """
        query = parse_item_query(text, self._clock())
        items = await self._repo.search(
            user_id,
            categories=KIND_CATEGORIES[query.kind] if query.kind else None,
            priority=query.priority,
            start=query.date_range.start if query.date_range else None,
            end=query.date_range.end if query.date_range else None,
            keywords=query.keywords,
            negations=query.negations,
            limit=MAX_CARDS,
        )
        await logger.ainfo(
            "chat_query_items",
            user_id=str(user_id),
            kind=query.kind,
            keywords=query.keywords,
            matches=len(items),
        )
        return ChatItemsResponse(
            message=ITEMS_FOUND if items else ITEMS_EMPTY,
            items=[item_card(item) for item in items],
        )

    async def calculate_spending(
        self, user_id: UUID, text: str, group_by: GroupBy | None = None
    ) -> ChatSpendingResponse:
        """Total pending receipts matching the question.

        Without a date in the text the last 30 days are used.

        Args:
            user_id: Owner.
            text: Free-text question.
            group_by: Optional breakdown by category, vendor or month.

        Returns:
            Total, currency, count and the most recent receipts as cards.
        """
        query = parse_spending_query(text, self._clock(), group_by=group_by)
        receipts = await self._repo.find_receipts(
            user_id,
            start=query.date_range.start,
            end=query.date_range.end,
            receipt_category=query.receipt_category,
            vendor=query.vendor,
            negations=query.negations,
        )
        summary = summarize_spending(receipts, group_by)
        await logger.ainfo(
            "chat_spending_calculated",
            user_id=str(user_id),
            receipt_category=query.receipt_category,
            vendor=query.vendor,
            count=summary.count,
            currencies=sorted(summary.by_currency),
        )

        if not receipts:
            message = SPEND_EMPTY
        elif len(summary.by_currency) > 1:
            message = SPEND_MIXED
        else:
            message = SPEND_FOUND
        return ChatSpendingResponse(
            message=message,
            total=_money(summary.total),
            currency=summary.currency,
            count=summary.count,
            receipts=[receipt_card(item) for item in receipts[:MAX_CARDS]],
            breakdown=summary.breakdown,
            by_currency={code: _money(amount) for code, amount in summary.by_currency.items()},
        )
