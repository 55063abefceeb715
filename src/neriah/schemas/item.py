"""Item schemas for API responses and user actions."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ItemStatus = Literal["pending", "completed", "snoozed", "deleted"]
ItemCategory = Literal[
    "reply", "follow_up", "deadline", "review", "task", "receipt", "invoice", "meeting"
]


class ItemResponse(BaseModel):
    """Schema for item response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email_id: str
    category: str
    priority: str
    status: str
    title: str
    description: str | None = None
    confidence: float
    extraction_notes: str | None = None
    receipt_details: dict[str, Any] | None = None
    receipt_category: str | None = None
    meeting_details: dict[str, Any] | None = None
    sender_name: str = ""
    sender_email: str = ""
    email_subject: str = ""
    email_snippet: str = ""
    email_date: datetime
    has_attachment: bool = False
    attachment_ids: list[str] = Field(default_factory=list)
    user_feedback: str | None = None
    feedback_comment: str | None = None
    snoozed_until: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime


class ItemListResponse(BaseModel):
    """Paginated items."""

    items: list[ItemResponse]
    total: int
    limit: int
    offset: int
    has_more: bool


class ItemStatsResponse(BaseModel):
    """Item counts per status."""

    pending: int = 0
    completed: int = 0
    snoozed: int = 0
    deleted: int = 0


class SnoozeRequest(BaseModel):
    """Schema for snoozing an item."""

    until: datetime = Field(description="When the item should reappear")


class FeedbackRequest(BaseModel):
    """Schema for item feedback."""

    feedback: Literal["positive", "negative"]
    comment: str | None = Field(default=None, max_length=2000)
