from __future__ import annotations

from celery.schedules import crontab

from memberhub.core.clock import get_clock
from memberhub.core.config import get_settings
from memberhub.membership.inactivity.service import clamp_threshold_days
from memberhub.services.inactivity_sweep import run_inactivity_sweep
from memberhub.services.notifications import get_notification_sink
from memberhub.workers.asyncio_runner import run_async_job
from memberhub.workers.celery_app import celery_app


def _clamp_schedule_seconds(value: int) -> int:
    return max(0, min(86400, int(value)))


def _clamp_schedule_hour(value: int) -> int:
    return max(0, min(23, int(value)))


def _clamp_schedule_minute(value: int) -> int:
    return max(0, min(59, int(value)))


async def run_inactivity_sweep_async() -> dict[str, object]:
    settings = get_settings()
    report, notification = await run_inactivity_sweep(
        now_utc=get_clock().now(),
        threshold_days=clamp_threshold_days(settings.inactivity_threshold_days),
        sink=get_notification_sink(),
    )
    result = report.as_dict()
    result["notification"] = notification.as_dict() if notification is not None else None
    return result


@celery_app.task(name="memberhub.workers.tasks.inactivity_sweep.run_inactivity_sweep")
def run_inactivity_sweep_task() -> dict[str, object]:
    return run_async_job(run_inactivity_sweep_async(), job_name="inactivity_sweep")


def build_schedule(*, schedule_seconds: int, hour: int, minute: int) -> float | crontab:
    seconds = _clamp_schedule_seconds(schedule_seconds)
    if seconds > 0:
        return float(seconds)
    return crontab(hour=_clamp_schedule_hour(hour), minute=_clamp_schedule_minute(minute))


celery_app.conf.beat_schedule = celery_app.conf.beat_schedule or {}
settings = get_settings()
celery_app.conf.beat_schedule.update(
    {
        "inactivity-sweep-daily": {
            "task": "memberhub.workers.tasks.inactivity_sweep.run_inactivity_sweep",
            "schedule": build_schedule(
                schedule_seconds=settings.inactivity_sweep_schedule_seconds,
                hour=settings.inactivity_sweep_schedule_hour,
                minute=settings.inactivity_sweep_schedule_minute,
            ),
            "options": {"queue": "q_low"},
        },
    }
)
