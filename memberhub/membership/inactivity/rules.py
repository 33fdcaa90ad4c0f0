from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from memberhub.membership.inactivity.constants import DEFAULT_INACTIVITY_THRESHOLD_DAYS, ONE_DAY
from memberhub.membership.inactivity.types import InactiveUser, InactivityReport, LoginRecord


def days_since(last_login_at: datetime, *, now: datetime) -> int:
    return (now - last_login_at) // ONE_DAY


def is_inactive(days_since_login: int, *, threshold_days: int) -> bool:
    return days_since_login >= threshold_days


def scan(
    users: Iterable[LoginRecord],
    *,
    now: datetime,
    threshold_days: int = DEFAULT_INACTIVITY_THRESHOLD_DAYS,
) -> InactivityReport:
    """Classify users by time since their last login.

    Users that never logged in are reported as unknown rather than inactive.
    """
    inactive: list[InactiveUser] = []
    unknown: list[str] = []
    scanned = 0

    for record in users:
        scanned += 1
        if record.last_login_at is None:
            unknown.append(record.user_id)
            continue

        elapsed_days = days_since(record.last_login_at, now=now)
        if is_inactive(elapsed_days, threshold_days=threshold_days):
            inactive.append(InactiveUser(user_id=record.user_id, days_since_login=elapsed_days))

    return InactivityReport(
        generated_at=now,
        threshold_days=threshold_days,
        total_users_scanned=scanned,
        inactive_users=tuple(inactive),
        unknown_login_user_ids=tuple(unknown),
    )
