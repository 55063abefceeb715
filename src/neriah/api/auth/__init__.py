"""Request authentication."""

from neriah.api.auth.dependencies import (
    CronAuth,
    CurrentUser,
    get_current_user,
    verify_cron_secret,
)
from neriah.api.auth.exceptions import AuthenticationError, InvalidTokenError
from neriah.api.auth.tokens import AuthUser, JWTValidator

__all__ = [
    "AuthUser",
    "AuthenticationError",
    "CronAuth",
    "CurrentUser",
    "InvalidTokenError",
    "JWTValidator",
    "get_current_user",
    "verify_cron_secret",
]
