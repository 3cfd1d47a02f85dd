"""Unit tests for notification dispatch and logging configuration."""

import json
import logging
import uuid
from unittest.mock import AsyncMock, patch

import httpx

from pmc_deposit.logging_config import JsonFormatter, RequestIdFilter, request_id_var
from pmc_deposit.notifications import (
    LoggingNotificationChannel,
    NotificationEvent,
    NotificationType,
    WebhookNotificationChannel,
    build_notification_channel,
    notify,
)


def make_event() -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType.SUBMISSION_STATUS_CHANGED.value,
        message="Submission status changed to PENDING",
        user_id=uuid.uuid4(),
        metadata={"status": "PENDING", "site": "pmc"},
    )


class FailingChannel:
    async def send(self, event: NotificationEvent) -> None:
        raise httpx.ConnectError("connection refused")


class TestNotify:
    """Tests for fire-and-forget dispatch."""

    async def test_success(self):
        channel = AsyncMock()
        assert await notify(channel, make_event()) is True
        channel.send.assert_awaited_once()

    async def test_no_channel(self):
        assert await notify(None, make_event()) is False

    async def test_failure_is_logged_not_raised(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert await notify(FailingChannel(), make_event()) is False
        assert "Notification dispatch failed" in caplog.text

    async def test_non_network_failure_is_logged_not_raised(self, caplog):
        channel = AsyncMock()
        channel.send.side_effect = RuntimeError("channel down")
        with caplog.at_level(logging.WARNING):
            assert await notify(channel, make_event()) is False
        assert "Notification dispatch failed" in caplog.text
        assert "channel down" in caplog.text

    async def test_malformed_webhook_url(self):
        channel = WebhookNotificationChannel("http://[not-a-host")
        assert await notify(channel, make_event()) is False

    async def test_webhook_posts_event(self):
        channel = WebhookNotificationChannel("https://hooks.example.org/pmc", timeout=2.0)
        response = httpx.Response(200, request=httpx.Request("POST", channel.url))
        with patch.object(httpx.AsyncClient, "post", AsyncMock(return_value=response)) as post:
            assert await notify(channel, make_event()) is True
        assert post.call_args.args[0] == "https://hooks.example.org/pmc"
        assert post.call_args.kwargs["json"]["type"] == "SUBMISSION_STATUS_CHANGED"

    async def test_webhook_error_status_reported(self):
        channel = WebhookNotificationChannel("https://hooks.example.org/pmc")
        response = httpx.Response(500, request=httpx.Request("POST", channel.url))
        with patch.object(httpx.AsyncClient, "post", AsyncMock(return_value=response)):
            assert await notify(channel, make_event()) is False

    async def test_logging_channel(self, caplog):
        with caplog.at_level(logging.INFO):
            await LoggingNotificationChannel().send(make_event())
        assert "Submission status changed to PENDING" in caplog.text

    def test_channel_selection(self):
        assert isinstance(build_notification_channel(None), LoggingNotificationChannel)
        assert isinstance(build_notification_channel("https://x.example"), WebhookNotificationChannel)


class TestJsonFormatter:
    """Tests for the production log format."""

    def test_extra_fields_and_request_id(self):
        record = logging.LogRecord("pmc", logging.INFO, __file__, 1, "Status changed", None, None)
        record.submission_version_id = "sv-1"
        record.attempt = 2

        token = request_id_var.set("req-123")
        try:
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        payload = json.loads(JsonFormatter().format(record))
        assert payload["message"] == "Status changed"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req-123"
        assert payload["submission_version_id"] == "sv-1"
        assert payload["attempt"] == 2

    def test_unserialisable_extra_stringified(self):
        record = logging.LogRecord("pmc", logging.INFO, __file__, 1, "x", None, None)
        record.record_id = uuid.UUID(int=1)
        payload = json.loads(JsonFormatter().format(record))
        assert payload["record_id"] == str(uuid.UUID(int=1))
