from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

import httpx
import structlog

from memberhub.core.config import get_settings
from memberhub.membership.inactivity.types import InactiveUser, InactivityReport

logger = structlog.get_logger(__name__)

INACTIVE_USER_EVENT = "member_inactive"


@dataclass(frozen=True, slots=True)
class NotificationResult:
    channel: str
    attempted: int
    delivered: int
    failed: int

    def as_dict(self) -> dict[str, object]:
        return {
            "channel": self.channel,
            "attempted": self.attempted,
            "delivered": self.delivered,
            "failed": self.failed,
        }


class NotificationSink(Protocol):
    async def notify_inactive(self, report: InactivityReport) -> NotificationResult: ...


class LoggingNotificationSink:
    channel = "log"

    async def notify_inactive(self, report: InactivityReport) -> NotificationResult:
        for user in report.inactive_users:
            logger.info(
                "inactive_user_notification_logged",
                user_id=user.user_id,
                days_since_login=user.days_since_login,
            )
        count = report.total_inactive_users
        return NotificationResult(channel=self.channel, attempted=count, delivered=count, failed=0)


def build_inactive_user_payload(user: InactiveUser, *, report: InactivityReport) -> dict[str, Any]:
    return {
        "event": INACTIVE_USER_EVENT,
        "user_id": user.user_id,
        "days_since_login": user.days_since_login,
        "threshold_days": report.threshold_days,
        "detected_at": report.generated_at.isoformat(),
    }


async def post_json(*, client: httpx.AsyncClient, url: str, body: dict[str, Any]) -> bool:
    try:
        response = await client.post(url, json=body)
        response.raise_for_status()
        return True
    except Exception:
        logger.exception(
            "inactive_user_notification_failed",
            user_id=body.get("user_id"),
        )
        return False


class WebhookNotificationSink:
    channel = "webhook"

    def __init__(self, *, url: str, timeout_seconds: float) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds

    async def notify_inactive(self, report: InactivityReport) -> NotificationResult:
        delivered = 0
        if report.inactive_users:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                for user in report.inactive_users:
                    body = build_inactive_user_payload(user, report=report)
                    if await post_json(client=client, url=self._url, body=body):
                        delivered += 1

        attempted = report.total_inactive_users
        return NotificationResult(
            channel=self.channel,
            attempted=attempted,
            delivered=delivered,
            failed=attempted - delivered,
        )


def get_notification_sink() -> NotificationSink:
    settings = get_settings()
    url = settings.inactivity_notification_webhook_url.strip()
    if not url:
        return LoggingNotificationSink()
    return WebhookNotificationSink(
        url=url,
        timeout_seconds=max(0.5, min(60.0, float(settings.inactivity_notification_timeout_seconds))),
    )
