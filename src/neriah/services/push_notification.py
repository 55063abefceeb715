"""Web push notifications to a user's registered browsers."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import structlog
from pywebpush import WebPushException, webpush

from neriah.repositories.push_subscription import PushSubscriptionRepository

logger = structlog.get_logger(__name__)

WebPushSender = Callable[..., Any]


@dataclass(frozen=True)
class NotificationData:
    """Content of one push notification.

    Attributes:
        title: Notification title.
        body: Notification text.
        badge_count: App badge number, if any.
        url: Page opened when the notification is tapped.
    """

    title: str
    body: str
    badge_count: int | None = None
    url: str | None = None

    def to_payload(self) -> str:
        """Serialize for the service worker."""
        payload: dict[str, Any] = {"title": self.title, "body": self.body}
        if self.badge_count is not None:
            payload["badge"] = self.badge_count
        if self.url is not None:
            payload["url"] = self.url
        return json.dumps(payload)


def new_items_notification(count: int) -> NotificationData:
    """Notification announcing freshly extracted items."""
    return NotificationData(
        title="Neriah",
        body=f"{count} new item{'s' if count != 1 else ''} found in your emails",
        badge_count=count,
        url="/dashboard",
    )


class PushNotificationService:
    """Sends push messages; never raises to the caller."""

    def __init__(
        self,
        repo: PushSubscriptionRepository,
        vapid_private_key: str | None,
        vapid_subject: str,
        sender: WebPushSender = webpush,
    ) -> None:
        """Initialize service.

        Args:
            repo: Push subscription repository.
            vapid_private_key: VAPID private key; push is disabled when None.
            vapid_subject: ``mailto:`` or URL identifying the sender.
            sender: Function with pywebpush's ``webpush`` signature.
        """
        self.repo = repo
        self.vapid_private_key = vapid_private_key
        self.vapid_subject = vapid_subject
        self._sender = sender

    @property
    def enabled(self) -> bool:
        """Check if VAPID credentials are configured."""
        return bool(self.vapid_private_key)

    async def notify_user(self, user_id: UUID, data: NotificationData) -> int:
        """Send a notification to every subscription the user has.

        Subscriptions the push service reports as gone (HTTP 410) are
        deleted. All other failures are logged and swallowed.

        Args:
            user_id: Recipient.
            data: Notification content.

        Returns:
            Number of subscriptions that accepted the message.
        """
        if not self.enabled:
            await logger.adebug("push_disabled", user_id=str(user_id))
            return 0

        try:
            subscriptions = await self.repo.list_by_user(user_id)
            payload = data.to_payload()
            delivered = 0
            for subscription in subscriptions:
                if await self._send(subscription.subscription_info(), payload):
                    delivered += 1
            await logger.ainfo(
                "push_sent",
                user_id=str(user_id),
                subscriptions=len(subscriptions),
                delivered=delivered,
            )
            return delivered
        except Exception as e:
            await logger.aerror("push_failed", user_id=str(user_id), error=str(e))
            return 0

    async def _send(self, subscription_info: dict[str, Any], payload: str) -> bool:
        endpoint = str(subscription_info.get("endpoint", ""))
        try:
            await asyncio.to_thread(
                self._sender,
                subscription_info=subscription_info,
                data=payload,
                vapid_private_key=self.vapid_private_key,
                vapid_claims={"sub": self.vapid_subject},
            )
            return True
        except WebPushException as e:
            status_code = getattr(e.response, "status_code", None)
            if status_code == 410:
                await self.repo.delete_by_endpoint(endpoint)
                await logger.ainfo("push_subscription_expired", endpoint=endpoint)
            else:
                await logger.awarning(
                    "push_delivery_failed", endpoint=endpoint, status_code=status_code
                )
            return False
