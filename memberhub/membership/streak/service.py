from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.core.config import get_settings
from memberhub.db.models.streak_state import StreakState as StreakStateModel
from memberhub.db.repo.streak_repo import StreakRepo
from memberhub.db.repo.users_repo import UsersRepo
from memberhub.membership.accounts.errors import AccountNotFoundError
from memberhub.membership.streak.errors import AlreadyCheckedInError
from memberhub.membership.streak.rules import build_view, check_in
from memberhub.membership.streak.types import StreakState, StreakView

logger = structlog.get_logger(__name__)


def _resolve_timezone(tz: str | None) -> str:
    return tz or get_settings().check_in_timezone


class StreakService:
    @staticmethod
    def _state_from_model(model: StreakStateModel) -> StreakState:
        return StreakState(
            current=model.current_streak,
            best=model.best_streak,
            last_check_in_date=model.last_check_in_date,
            description=model.description,
        )

    @staticmethod
    def _apply_state_to_model(model: StreakStateModel, state: StreakState, now_utc: datetime) -> None:
        model.current_streak = state.current
        model.best_streak = state.best
        model.last_check_in_date = state.last_check_in_date
        model.description = state.description
        model.updated_at = now_utc
        model.version += 1

    @staticmethod
    async def _get_or_create_for_update(
        session: AsyncSession,
        user_id: str,
        now_utc: datetime,
    ) -> StreakStateModel:
        model = await StreakRepo.get_by_user_id_for_update(session, user_id)
        if model is not None:
            return model

        user = await UsersRepo.get_by_id(session, user_id)
        if user is None:
            raise AccountNotFoundError(user_id)
        return await StreakRepo.create_default_state(session, user_id=user_id, now_utc=now_utc)

    @staticmethod
    async def get_state(session: AsyncSession, *, user_id: str) -> StreakState:
        model = await StreakRepo.get_by_user_id(session, user_id)
        if model is None:
            if await UsersRepo.get_by_id(session, user_id) is None:
                raise AccountNotFoundError(user_id)
            return StreakState()
        return StreakService._state_from_model(model)

    @staticmethod
    async def get_view(
        session: AsyncSession,
        *,
        user_id: str,
        now_utc: datetime,
        tz: str | None = None,
    ) -> StreakView:
        state = await StreakService.get_state(session, user_id=user_id)
        return build_view(state, now=now_utc, tz=_resolve_timezone(tz))

    @staticmethod
    async def check_in(
        session: AsyncSession,
        *,
        user_id: str,
        now_utc: datetime,
        note: str | None = None,
        tz: str | None = None,
    ) -> StreakState:
        model = await StreakService._get_or_create_for_update(session, user_id, now_utc)
        before = StreakService._state_from_model(model)

        try:
            after = check_in(before, now=now_utc, note=note, tz=_resolve_timezone(tz))
        except AlreadyCheckedInError:
            logger.info(
                "streak_check_in_rejected_already_checked_in",
                user_id=user_id,
                last_check_in_date=before.last_check_in_date.isoformat()
                if before.last_check_in_date
                else None,
            )
            raise

        StreakService._apply_state_to_model(model, after, now_utc)
        await session.flush()
        logger.info(
            "streak_check_in_recorded",
            user_id=user_id,
            current=after.current,
            best=after.best,
            continued=after.current > 1,
            check_in_date=after.last_check_in_date.isoformat() if after.last_check_in_date else None,
        )
        return after
