"""Access token management for mail providers."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID

import structlog

from neriah.auth.google import GoogleOAuth
from neriah.models.oauth_token import OAuthToken
from neriah.repositories.oauth_token import OAuthTokenRepository

logger = structlog.get_logger(__name__)


class AuthServiceError(Exception):
    """Base exception for auth service errors."""


class TokenNotFoundError(AuthServiceError):
    """Raised when no token exists for user."""

    def __init__(self, user_id: UUID) -> None:
        self.user_id = user_id
        super().__init__(f"No mail credentials stored for user {user_id}")


class AuthService:
    """Hands out valid access tokens, refreshing them near expiry."""

    # Refresh token 5 minutes before expiry to avoid race conditions
    REFRESH_BUFFER_SECONDS = 300

    def __init__(
        self,
        oauth: GoogleOAuth,
        token_repo: OAuthTokenRepository,
    ) -> None:
        """Initialize auth service.

        Args:
            oauth: Google OAuth client for token refresh.
            token_repo: Repository for token database operations.
        """
        self.oauth = oauth
        self.token_repo = token_repo

    async def get_valid_token(self, user_id: UUID, provider: str = "google") -> str:
        """Get valid access token, refreshing if needed.

        Args:
            user_id: User UUID.
            provider: OAuth provider (default: "google").

        Returns:
            Valid access token string.

        Raises:
            TokenNotFoundError: If no token exists for user.
            OAuthError: If token refresh fails.
        """
        token = await self.token_repo.get_by_user(user_id, provider)
        if token is None:
            raise TokenNotFoundError(user_id)

        if not self._needs_refresh(token):
            return token.access_token

        new_tokens = await self.oauth.refresh_token(token.refresh_token)
        updated = await self.token_repo.update_tokens(
            user_id=user_id,
            access_token=new_tokens.access_token,
            refresh_token=new_tokens.refresh_token,
            expires_at=new_tokens.expires_at,
            provider=provider,
        )
        if updated is None:
            raise AuthServiceError("Failed to update refreshed token")

        await logger.ainfo("access_token_refreshed", user_id=str(user_id), provider=provider)
        return new_tokens.access_token

    def _needs_refresh(self, token: OAuthToken) -> bool:
        """Check if token is expired or expires within the refresh buffer."""
        expires_at = token.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        buffer = timedelta(seconds=self.REFRESH_BUFFER_SECONDS)
        return datetime.now(UTC) >= (expires_at - buffer)
