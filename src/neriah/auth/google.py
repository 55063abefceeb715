"""Google OAuth token endpoint client."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import httpx


class OAuthError(Exception):
    """Token refresh rejected by Google, or Google unreachable."""

    def __init__(self, error: str, description: str | None = None) -> None:
        self.error = error
        self.description = description
        super().__init__(f"{error}: {description}" if description else error)


@dataclass
class GoogleTokens:
    """Result of a refresh grant."""

    access_token: str
    refresh_token: str
    expires_at: datetime
    scopes: list[str] = field(default_factory=list)


class GoogleOAuth:
    """Refreshes Google access tokens.

    Only the refresh grant is needed here; the authorization-code leg of the
    flow is handled by the web front end.
    """

    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            client_id: Google OAuth client ID.
            client_secret: Google OAuth client secret.
            http_client: Optional shared HTTP client (mainly for tests).
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self._http_client = http_client

    async def _post(self, data: dict[str, str]) -> httpx.Response:
        if self._http_client is not None:
            return await self._http_client.post(self.TOKEN_URL, data=data)
        async with httpx.AsyncClient(timeout=30.0) as client:
            return await client.post(self.TOKEN_URL, data=data)

    async def refresh_token(self, refresh_token: str) -> GoogleTokens:
        """Exchange a refresh token for a new access token.

        Args:
            refresh_token: Stored refresh token.

        Returns:
            New tokens. Google usually omits a new refresh token, in which case
            the one passed in is kept.

        Raises:
            OAuthError: If Google rejects the refresh or is unreachable.
        """
        try:
            response = await self._post(
                {
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": refresh_token,
                    "grant_type": "refresh_token",
                }
            )
        except httpx.HTTPError as e:
            raise OAuthError("request_failed", str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400 or "access_token" not in data:
            raise OAuthError(
                str(data.get("error", "refresh_failed")),
                data.get("error_description") or f"HTTP {response.status_code}",
            )

        expires_in = int(data.get("expires_in", 3600))
        scope = str(data.get("scope", ""))
        return GoogleTokens(
            access_token=str(data["access_token"]),
            refresh_token=str(data.get("refresh_token") or refresh_token),
            expires_at=datetime.now(UTC) + timedelta(seconds=expires_in),
            scopes=scope.split() if scope else [],
        )
