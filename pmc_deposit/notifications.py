"""
Operational notifications.

Fire-and-forget: a failed dispatch is logged and never fails the operation
that triggered it.
"""

import uuid
from enum import Enum
from typing import Any, Dict, Optional, Protocol

import httpx
from pydantic import BaseModel, Field

from pmc_deposit.logging_config import get_logger

logger = get_logger(__name__)


class NotificationType(str, Enum):
    SUBMISSION_STATUS_CHANGED = "SUBMISSION_STATUS_CHANGED"
    NEW_SUBMISSION = "NEW_SUBMISSION"
    SUBMISSION_VERSION_CLONED = "SUBMISSION_VERSION_CLONED"


class NotificationEvent(BaseModel):
    """A structured event for the operational messaging system."""

    type: str
    message: str
    user_id: Optional[uuid.UUID] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class NotificationChannel(Protocol):
    async def send(self, event: NotificationEvent) -> None: ...


class LoggingNotificationChannel:
    """Writes notifications to the application log. Used when no webhook is configured."""

    async def send(self, event: NotificationEvent) -> None:
        logger.info(
            event.message,
            extra={
                "notification_type": event.type,
                "user_id": str(event.user_id) if event.user_id else None,
                **{f"meta_{k}": v for k, v in event.metadata.items()},
            },
        )


class WebhookNotificationChannel:
    """Posts notifications as JSON to a webhook URL."""

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    async def send(self, event: NotificationEvent) -> None:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.url, json=event.model_dump(mode="json"))
            response.raise_for_status()


def build_notification_channel(
    webhook_url: Optional[str],
    timeout: float = 5.0,
) -> NotificationChannel:
    if webhook_url:
        return WebhookNotificationChannel(webhook_url, timeout=timeout)
    return LoggingNotificationChannel()


async def notify(channel: Optional[NotificationChannel], event: NotificationEvent) -> bool:
    """
    Dispatch ``event`` on ``channel``.

    Returns False (after logging) when the dispatch failed.
    """
    if channel is None:
        return False
    try:
        await channel.send(event)
    except Exception as e:
        # The operation that raised the event has already committed
        logger.warning(
            "Notification dispatch failed",
            extra={"notification_type": event.type, "error": str(e)},
            exc_info=True,
        )
        return False
    return True
