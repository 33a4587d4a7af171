"""
Pushover delivery for party notifications.
"""

import json
import logging
from typing import Dict, Optional

import httpx

from ..config.settings import PushoverSettings
from ..parser.categorizer import Notification

logger = logging.getLogger(__name__)


class PushoverNotifier:
    """
    Sends notifications to the Pushover messages API.

    Delivery is best effort: failures are logged and the notification is
    dropped, nothing is retried.
    """

    def __init__(
        self,
        settings: PushoverSettings,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the notifier.

        Args:
            settings: Credentials, endpoint and timeout
            client: HTTP client to use; one is created (and owned) if omitted
        """
        self.settings = settings
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=settings.timeout)

        self.stats = {"sent": 0, "failed": 0}

    async def __aenter__(self) -> "PushoverNotifier":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        """Close the HTTP client if this notifier created it."""
        if self._owns_client:
            await self.client.aclose()

    def payload(self, notification: Notification) -> Dict[str, str]:
        """Build the request body for a notification."""
        return {
            "token": self.settings.app_token,
            "user": self.settings.user_key,
            "title": notification.title,
            "message": notification.message,
            "sound": notification.sound,
        }

    async def send(self, notification: Notification) -> bool:
        """
        Deliver a notification.

        Args:
            notification: Notification to deliver

        Returns:
            True if the service accepted the request
        """
        try:
            body = json.dumps(self.payload(notification))
        except (TypeError, ValueError) as e:
            logger.error(f"json encode: {e}")
            self.stats["failed"] += 1
            return False

        try:
            response = await self.client.post(
                self.settings.endpoint,
                content=body,
                headers={"Content-Type": "application/json"},
                timeout=self.settings.timeout,
            )
        except httpx.HTTPError as e:
            logger.error(f"http: {e}")
            self.stats["failed"] += 1
            return False

        if response.is_error:
            logger.warning(
                f"Pushover rejected notification {notification.title!r}: "
                f"HTTP {response.status_code} {response.text}"
            )
            self.stats["failed"] += 1
            return False

        logger.info(f"Sent notification: {notification.title}")
        self.stats["sent"] += 1
        return True
