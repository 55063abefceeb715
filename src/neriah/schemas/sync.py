"""Sync schemas for API requests and responses.

Trigger responses use camelCase keys, matching what the web client reads.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SyncTriggerResponse(_CamelModel):
    """Result of an initial or manual sync."""

    success: bool = True
    message: str
    emails_fetched: int
    emails_processed: int
    items_created: int


class SweepResponse(_CamelModel):
    """Result of the scheduled sweep."""

    users_processed: int
    successful: int
    failed: int
    skipped: int = 0
    total_items_extracted: int


class ErrorResponse(BaseModel):
    """Error payload returned by every endpoint."""

    error: str
    message: str


class SyncRunResponse(BaseModel):
    """Schema for a sync run."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sync_type: str
    status: str
    started_at: datetime
    completed_at: datetime | None = None
    emails_fetched: int
    emails_processed: int
    items_created: int
    error_message: str | None = None


class SyncStatusResponse(BaseModel):
    """Sync-related profile fields."""

    model_config = ConfigDict(from_attributes=True)

    initial_extraction_completed: bool
    sync_enabled: bool
    last_sync_at: datetime | None = None
    sync_in_progress: bool = False


class SyncSettingsUpdate(BaseModel):
    """Schema for updating sync settings."""

    sync_enabled: bool = Field(description="Include this user in the scheduled sweep")


class PushSubscriptionKeys(BaseModel):
    """Keys of a browser push subscription."""

    p256dh: str
    auth: str


class PushSubscriptionCreate(BaseModel):
    """Browser ``PushSubscription.toJSON()`` payload."""

    endpoint: str = Field(min_length=1)
    keys: PushSubscriptionKeys
