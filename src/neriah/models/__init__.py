"""SQLAlchemy models for Neriah."""

from neriah.models.base import Base
from neriah.models.item import Item
from neriah.models.oauth_token import OAuthToken
from neriah.models.profile import Profile
from neriah.models.push_subscription import PushSubscription
from neriah.models.sync_run import SyncRun

__all__ = [
    "Base",
    "Item",
    "OAuthToken",
    "Profile",
    "PushSubscription",
    "SyncRun",
]
