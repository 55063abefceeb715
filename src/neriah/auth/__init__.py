"""Mail provider OAuth support."""

from neriah.auth.google import GoogleOAuth, GoogleTokens, OAuthError

__all__ = [
    "GoogleOAuth",
    "GoogleTokens",
    "OAuthError",
]
