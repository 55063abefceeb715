"""Repository layer for database operations."""

from neriah.repositories.item import ItemRepository
from neriah.repositories.oauth_token import OAuthTokenRepository
from neriah.repositories.profile import ProfileRepository
from neriah.repositories.push_subscription import PushSubscriptionRepository
from neriah.repositories.sync_run import SyncRunRepository

__all__ = [
    "ItemRepository",
    "OAuthTokenRepository",
    "ProfileRepository",
    "PushSubscriptionRepository",
    "SyncRunRepository",
]
