"""OAuth token repository for database operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from neriah.models.oauth_token import OAuthToken


class OAuthTokenRepository:
    """Repository for OAuth token database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def get_by_user(self, user_id: UUID, provider: str = "google") -> OAuthToken | None:
        """Get token by user ID and provider.

        Args:
            user_id: User UUID.
            provider: OAuth provider (default: "google").

        Returns:
            Token if found, None otherwise.
        """
        result = await self.session.execute(
            select(OAuthToken).where(
                and_(OAuthToken.user_id == user_id, OAuthToken.provider == provider)
            )
        )
        return result.scalar_one_or_none()

    async def save(
        self,
        user_id: UUID,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
        scopes: list[str] | None = None,
        provider: str = "google",
    ) -> OAuthToken:
        """Create or replace the stored token for a user.

        Args:
            user_id: User UUID.
            access_token: Access token.
            refresh_token: Refresh token.
            expires_at: Access token expiry.
            scopes: Granted scopes.
            provider: OAuth provider.

        Returns:
            The stored token.
        """
        token = await self.get_by_user(user_id, provider)
        if token is None:
            token = OAuthToken(user_id=user_id, provider=provider)
            self.session.add(token)
        token.access_token = access_token
        token.refresh_token = refresh_token
        token.expires_at = expires_at
        token.scopes = scopes
        await self.session.commit()
        await self.session.refresh(token)
        return token

    async def update_tokens(
        self,
        user_id: UUID,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
        provider: str = "google",
    ) -> OAuthToken | None:
        """Store refreshed tokens.

        Args:
            user_id: User UUID.
            access_token: New access token.
            refresh_token: Refresh token (possibly rotated).
            expires_at: New expiry.
            provider: OAuth provider.

        Returns:
            Updated token if found, None otherwise.
        """
        token = await self.get_by_user(user_id, provider)
        if token is None:
            return None

        token.access_token = access_token
        token.refresh_token = refresh_token
        token.expires_at = expires_at
        await self.session.commit()
        await self.session.refresh(token)
        return token

    async def delete(self, user_id: UUID, provider: str = "google") -> bool:
        """Delete a user's token.

        Args:
            user_id: User UUID.
            provider: OAuth provider.

        Returns:
            True if a token was deleted.
        """
        result = await self.session.execute(
            delete(OAuthToken).where(
                and_(OAuthToken.user_id == user_id, OAuthToken.provider == provider)
            )
        )
        await self.session.commit()
        return bool(result.rowcount)
