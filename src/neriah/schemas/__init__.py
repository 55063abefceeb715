"""Pydantic schemas for Neriah."""

from neriah.schemas.extraction import (
    ExtractedItem,
    ExtractedMeeting,
    ExtractedReceipt,
    ExtractedTask,
    ExtractionResult,
    parse_extraction_payload,
)
from neriah.schemas.item import (
    FeedbackRequest,
    ItemListResponse,
    ItemResponse,
    ItemStatsResponse,
    SnoozeRequest,
)
from neriah.schemas.sync import (
    ErrorResponse,
    PushSubscriptionCreate,
    SweepResponse,
    SyncRunResponse,
    SyncSettingsUpdate,
    SyncStatusResponse,
    SyncTriggerResponse,
)

__all__ = [
    "ErrorResponse",
    "ExtractedItem",
    "ExtractedMeeting",
    "ExtractedReceipt",
    "ExtractedTask",
    "ExtractionResult",
    "FeedbackRequest",
    "ItemListResponse",
    "ItemResponse",
    "ItemStatsResponse",
    "PushSubscriptionCreate",
    "SnoozeRequest",
    "SweepResponse",
    "SyncRunResponse",
    "SyncSettingsUpdate",
    "SyncStatusResponse",
    "SyncTriggerResponse",
    "parse_extraction_payload",
]
