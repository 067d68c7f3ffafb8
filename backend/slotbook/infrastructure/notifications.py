from __future__ import annotations

import logging

import httpx

from ..config import Settings
from ..domain.notifications import ConfirmationRequest, NotificationService

logger = logging.getLogger(__name__)


class LoggingNotificationService(NotificationService):
    """Fallback used when no webhook is configured: records what would be sent."""

    async def send_confirmation(self, request: ConfirmationRequest) -> None:
        logger.info(
            "confirmation for %s: %d booking(s) at %s",
            request.email,
            len(request.bookings),
            request.event_title,
        )


class WebhookNotificationService(NotificationService):
    """Posts the confirmation payload to the mail/calendar service."""

    def __init__(self, url: str, *, timeout: float = 5.0, client: httpx.AsyncClient | None = None) -> None:
        self.url = url
        self.timeout = timeout
        self._client = client

    async def send_confirmation(self, request: ConfirmationRequest) -> None:
        payload = request.model_dump(mode="json", exclude_none=True)
        if self._client is not None:
            response = await self._client.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            return
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json=payload)
            response.raise_for_status()


def build_notification_service(settings: Settings) -> NotificationService:
    if settings.notify_webhook_url:
        return WebhookNotificationService(settings.notify_webhook_url, timeout=settings.notify_timeout_seconds)
    return LoggingNotificationService()
