from __future__ import annotations

from datetime import datetime

import structlog

from memberhub.db.session import SessionLocal
from memberhub.membership.inactivity.service import InactivitySweepService
from memberhub.membership.inactivity.types import InactivityReport
from memberhub.services.notifications import NotificationResult, NotificationSink

logger = structlog.get_logger(__name__)


async def notify_safely(sink: NotificationSink, report: InactivityReport) -> NotificationResult:
    try:
        return await sink.notify_inactive(report)
    except Exception:
        logger.exception(
            "inactivity_notification_sink_failed",
            sink=type(sink).__name__,
            total_inactive_users=report.total_inactive_users,
        )
        attempted = report.total_inactive_users
        return NotificationResult(
            channel=getattr(sink, "channel", type(sink).__name__),
            attempted=attempted,
            delivered=0,
            failed=attempted,
        )


async def run_inactivity_sweep(
    *,
    now_utc: datetime,
    threshold_days: int,
    sink: NotificationSink | None,
) -> tuple[InactivityReport, NotificationResult | None]:
    try:
        async with SessionLocal.begin() as session:
            report = await InactivitySweepService.run(
                session,
                now_utc=now_utc,
                threshold_days=threshold_days,
            )
    except Exception:
        logger.exception("inactivity_sweep_failed", threshold_days=threshold_days)
        raise

    notification: NotificationResult | None = None
    if sink is not None and report.total_inactive_users > 0:
        notification = await notify_safely(sink, report)

    log_fields: dict[str, object] = {
        "generated_at": report.generated_at.isoformat(),
        "threshold_days": report.threshold_days,
        "total_users_scanned": report.total_users_scanned,
        "total_inactive_users": report.total_inactive_users,
        "notification": notification.as_dict() if notification is not None else None,
    }
    if notification is not None and notification.failed > 0:
        logger.warning("inactivity_sweep_finished_with_notification_failures", **log_fields)
    else:
        logger.info("inactivity_sweep_finished", **log_fields)
    return report, notification
