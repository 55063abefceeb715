"""Chat query schemas for dashboard questions and spending totals."""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

ItemKind = Literal["task", "receipt", "meeting"]
GroupBy = Literal["category", "vendor", "month"]


class ChatQueryRequest(BaseModel):
    """Free-text question about pending items."""

    text: str = Field(default="", max_length=500)


class ChatCalculateRequest(BaseModel):
    """Free-text spending question with an optional breakdown."""

    text: str = Field(default="", max_length=500)
    group_by: GroupBy | None = Field(
        default=None, validation_alias=AliasChoices("groupBy", "group_by")
    )


class ItemCard(BaseModel):
    """Compact item shown in a chat reply."""

    id: UUID
    title: str
    subtitle: str = ""
    kind: ItemKind


class ChatItemsResponse(BaseModel):
    """Items matching a chat question."""

    kind: Literal["items"] = "items"
    message: str
    items: list[ItemCard]


class SpendingBreakdown(BaseModel):
    """Spend for one group."""

    label: str
    amount: str
    count: int


class ChatSpendingResponse(BaseModel):
    """Total spend over matching receipts.

    ``receipts`` holds the most recent matches only; ``count`` and ``total``
    cover all of them.
    """

    kind: Literal["calc"] = "calc"
    message: str
    total: str
    currency: str
    count: int
    receipts: list[ItemCard]
    by_currency: dict[str, str] = Field(default_factory=dict)
    breakdown: list[SpendingBreakdown] = Field(default_factory=list)
