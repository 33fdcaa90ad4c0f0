from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

from memberhub.membership.streak.constants import DEFAULT_CHECK_IN_TIMEZONE
from memberhub.membership.streak.errors import AlreadyCheckedInError
from memberhub.membership.streak.time import local_check_in_date
from memberhub.membership.streak.types import StreakState, StreakView

ONE_DAY = timedelta(days=1)


def check_in(
    state: StreakState,
    *,
    now: datetime,
    note: str | None = None,
    tz: str = DEFAULT_CHECK_IN_TIMEZONE,
) -> StreakState:
    today = local_check_in_date(now, tz)
    if state.last_check_in_date == today:
        raise AlreadyCheckedInError(today.isoformat())

    if state.last_check_in_date is not None and state.last_check_in_date == today - ONE_DAY:
        current = state.current + 1
    else:
        current = 1

    return replace(
        state,
        current=current,
        best=max(current, state.best),
        last_check_in_date=today,
        description=note if note is not None else state.description,
    )


def can_check_in(state: StreakState, *, now: datetime, tz: str = DEFAULT_CHECK_IN_TIMEZONE) -> bool:
    return state.last_check_in_date != local_check_in_date(now, tz)


def effective_current(state: StreakState, *, today: date) -> int:
    # stored counter is stale once a full day has been missed
    if state.last_check_in_date is None:
        return 0
    if state.last_check_in_date < today - ONE_DAY:
        return 0
    return state.current


def build_view(state: StreakState, *, now: datetime, tz: str = DEFAULT_CHECK_IN_TIMEZONE) -> StreakView:
    today = local_check_in_date(now, tz)
    return StreakView(
        current=state.current,
        effective_current=effective_current(state, today=today),
        best=state.best,
        last_check_in_date=state.last_check_in_date,
        description=state.description,
        today=today,
        can_check_in_today=can_check_in(state, now=now, tz=tz),
    )
