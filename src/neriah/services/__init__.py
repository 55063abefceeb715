"""Service layer for Neriah."""

from neriah.services.account_service import AccountService
from neriah.services.attachment_service import AttachmentFile, AttachmentService
from neriah.services.auth_service import AuthService, AuthServiceError, TokenNotFoundError
from neriah.services.candidate_filters import (
    dedupe_candidates,
    filter_by_confidence,
    select_unprocessed,
)
from neriah.services.extractor import (
    ExtractionError,
    ExtractionRequest,
    ExtractionTransportError,
    LLMExtractor,
    MalformedExtractionError,
)
from neriah.services.item_builder import build_item, normalize_priority
from neriah.services.item_service import InvalidSnoozeError, ItemNotFoundError, ItemService
from neriah.services.pacing import paced_map
from neriah.services.push_notification import (
    NotificationData,
    PushNotificationService,
    new_items_notification,
)
from neriah.services.scheduled_sync import ScheduledSyncService, SweepReport
from neriah.services.sync_policy import (
    DEFAULT_POLICIES,
    ModePolicy,
    PacingPolicy,
    SyncMode,
    policies_from_config,
)
from neriah.services.sync_service import (
    EligibilityError,
    PersistenceError,
    ProfileNotFoundError,
    SyncError,
    SyncInProgressError,
    SyncResult,
    SyncService,
)

__all__ = [
    "DEFAULT_POLICIES",
    "AccountService",
    "AttachmentFile",
    "AttachmentService",
    "AuthService",
    "AuthServiceError",
    "EligibilityError",
    "ExtractionError",
    "ExtractionRequest",
    "ExtractionTransportError",
    "InvalidSnoozeError",
    "ItemNotFoundError",
    "ItemService",
    "LLMExtractor",
    "MalformedExtractionError",
    "ModePolicy",
    "NotificationData",
    "PacingPolicy",
    "PersistenceError",
    "ProfileNotFoundError",
    "PushNotificationService",
    "ScheduledSyncService",
    "SweepReport",
    "SyncError",
    "SyncInProgressError",
    "SyncMode",
    "SyncResult",
    "SyncService",
    "TokenNotFoundError",
    "build_item",
    "dedupe_candidates",
    "filter_by_confidence",
    "new_items_notification",
    "normalize_priority",
    "paced_map",
    "policies_from_config",
    "select_unprocessed",
]
