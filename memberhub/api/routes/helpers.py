from __future__ import annotations

from memberhub.db.models.users import User
from memberhub.membership.accounts.types import Role
from memberhub.membership.streak.types import StreakView

from .models import AccountResponse, StreakResponse


def account_as_response(user: User) -> AccountResponse:
    return AccountResponse(
        id=user.id,
        email=user.email,
        display_name=user.display_name,
        role=Role(user.role),
        hobbies=list(user.hobbies or []),
        last_login_at=user.last_login_at,
        created_at=user.created_at,
        is_new_user=bool(user.is_new_user),
        is_password_changed=bool(user.is_password_changed),
        is_inactive=bool(user.is_inactive),
    )


def streak_as_response(view: StreakView) -> StreakResponse:
    return StreakResponse(
        current=view.current,
        effective_current=view.effective_current,
        best=view.best,
        last_check_in_date=view.last_check_in_date,
        description=view.description,
        today=view.today,
        can_check_in_today=view.can_check_in_today,
    )
