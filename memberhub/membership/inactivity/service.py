from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.db.repo.users_repo import UsersRepo
from memberhub.membership.inactivity.constants import DEFAULT_INACTIVITY_THRESHOLD_DAYS
from memberhub.membership.inactivity.rules import scan
from memberhub.membership.inactivity.types import InactivityReport, LoginRecord

logger = structlog.get_logger(__name__)


def clamp_threshold_days(value: int) -> int:
    return max(1, min(3650, int(value)))


class InactivitySweepService:
    @staticmethod
    async def load_login_records(session: AsyncSession) -> list[LoginRecord]:
        rows = await UsersRepo.list_last_logins(session)
        return [LoginRecord(user_id=user_id, last_login_at=last_login_at) for user_id, last_login_at in rows]

    @staticmethod
    async def run(
        session: AsyncSession,
        *,
        now_utc: datetime,
        threshold_days: int = DEFAULT_INACTIVITY_THRESHOLD_DAYS,
    ) -> InactivityReport:
        records = await InactivitySweepService.load_login_records(session)
        report = scan(records, now=now_utc, threshold_days=clamp_threshold_days(threshold_days))

        flagged = await UsersRepo.mark_inactive(
            session,
            user_ids=[user.user_id for user in report.inactive_users],
            flagged_at=now_utc,
        )
        logger.info(
            "inactivity_sweep_scanned",
            total_users_scanned=report.total_users_scanned,
            total_inactive_users=report.total_inactive_users,
            unknown_login_users=len(report.unknown_login_user_ids),
            rows_flagged=flagged,
            threshold_days=report.threshold_days,
        )
        return report
