"""Gmail REST API client."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from neriah.integrations.gmail.models import GmailMessageRef
from neriah.integrations.gmail.rate_limiter import RateLimiter


class GmailApiError(Exception):
    """Exception raised for Gmail API errors.

    Attributes:
        status_code: HTTP status code from the API.
        error_code: Error code from Gmail API response.
        message: Human-readable error message.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message

    @property
    def is_not_found(self) -> bool:
        """Check if the resource no longer exists."""
        return self.status_code == 404


class GmailClient:
    """Thin async client over the Gmail v1 REST API.

    Typical usage:
        async with GmailClient(access_token) as client:
            refs, _ = await client.list_messages(query="category:primary")
            messages = await client.batch_get_messages(refs)

    Attributes:
        BASE_URL: Gmail API base URL.
    """

    BASE_URL = "https://gmail.googleapis.com/gmail/v1"

    def __init__(
        self,
        access_token: str,
        rate_limiter: RateLimiter | None = None,
        user_id: str = "me",
        timeout: float = 30.0,
    ) -> None:
        """Initialize Gmail client.

        Args:
            access_token: Valid OAuth2 access token for Gmail API.
            rate_limiter: Optional rate limiter for API throttling.
            user_id: Gmail user ID (default: "me" for authenticated user).
            timeout: Per-request timeout in seconds.
        """
        self.access_token = access_token
        self.rate_limiter = rate_limiter or RateLimiter()
        self.user_id = user_id
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> GmailClient:
        """Enter async context manager."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        """Exit async context manager."""
        await self.close()

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Make an API request with rate limiting.

        Args:
            method: HTTP method.
            path: API path relative to the user resource.
            params: Query parameters.

        Returns:
            JSON response as dict.

        Raises:
            GmailApiError: If the API returns an error or is unreachable.
        """
        await self.rate_limiter.acquire()

        url = f"{self.BASE_URL}/users/{self.user_id}/{path}"
        try:
            response = await self._client.request(method, url, params=params)
        except httpx.HTTPError as e:
            raise GmailApiError(f"Gmail request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_data: dict[str, Any] = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            error_info = error_data.get("error", {})
            if isinstance(error_info, dict):
                raise GmailApiError(
                    message=str(error_info.get("message", response.text)),
                    status_code=response.status_code,
                    error_code=str(error_info.get("code", "")),
                )
            raise GmailApiError(
                message=response.text,
                status_code=response.status_code,
            )

        result: dict[str, Any] = response.json()
        return result

    async def list_messages(
        self,
        max_results: int = 50,
        page_token: str | None = None,
        query: str | None = None,
    ) -> tuple[list[GmailMessageRef], str | None]:
        """List message IDs matching a search query.

        Args:
            max_results: Maximum number of results (1-500).
            page_token: Token for fetching the next page.
            query: Gmail search query (e.g., "category:primary after:1700000000").

        Returns:
            Tuple of (message refs, next page token or None).

        Raises:
            GmailApiError: If the API returns an error.
        """
        params: dict[str, str] = {"maxResults": str(max(1, min(max_results, 500)))}
        if page_token:
            params["pageToken"] = page_token
        if query:
            params["q"] = query

        result = await self._request("GET", "messages", params)

        refs = []
        for msg in result.get("messages") or []:
            if isinstance(msg, dict) and msg.get("id"):
                thread_id = str(msg.get("threadId", ""))
                refs.append(GmailMessageRef(id=str(msg["id"]), thread_id=thread_id))

        next_page = result.get("nextPageToken")
        return refs, str(next_page) if next_page else None

    async def get_message(
        self,
        message_id: str,
        format: str = "full",  # noqa: A002
    ) -> dict[str, Any]:
        """Get a single message by ID.

        Args:
            message_id: Gmail message ID.
            format: Response format ("minimal", "full", "raw", "metadata").

        Returns:
            Raw Gmail API message resource.

        Raises:
            GmailApiError: If the API returns an error.
        """
        return await self._request("GET", f"messages/{message_id}", {"format": format})

    async def batch_get_messages(
        self,
        message_refs: list[GmailMessageRef],
        format: str = "full",  # noqa: A002
    ) -> list[dict[str, Any] | GmailApiError]:
        """Get multiple messages concurrently.

        Args:
            message_refs: Message references to fetch.
            format: Response format.

        Returns:
            Results in input order; each is the raw message or the GmailApiError
            raised while fetching it.
        """

        async def fetch_one(ref: GmailMessageRef) -> dict[str, Any] | GmailApiError:
            try:
                return await self.get_message(ref.id, format=format)
            except GmailApiError as e:
                return e

        results = await asyncio.gather(*[fetch_one(ref) for ref in message_refs])
        return list(results)

    async def get_attachment(self, message_id: str, attachment_id: str) -> dict[str, Any]:
        """Download an attachment body.

        Args:
            message_id: Gmail message ID.
            attachment_id: Attachment ID from the message part.

        Returns:
            Attachment resource with ``data`` (URL-safe base64) and ``size``.

        Raises:
            GmailApiError: If the API returns an error.
        """
        return await self._request("GET", f"messages/{message_id}/attachments/{attachment_id}")
