from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from memberhub.api.deps import get_current_account
from memberhub.core.clock import Clock, get_clock
from memberhub.db.session import SessionLocal
from memberhub.membership.accounts.constants import HOBBY_CATALOG
from memberhub.membership.accounts.errors import (
    AccountNotFoundError,
    InvalidHobbyError,
    InvalidProfileError,
)
from memberhub.membership.accounts.service import AccountService
from memberhub.membership.accounts.types import CurrentAccount
from memberhub.membership.streak.constants import ALREADY_CHECKED_IN_MESSAGE
from memberhub.membership.streak.errors import AlreadyCheckedInError
from memberhub.membership.streak.service import StreakService

from .helpers import account_as_response, streak_as_response
from .models import (
    AccountResponse,
    CheckInRequest,
    CheckInResponse,
    HobbiesUpdateRequest,
    HobbyCatalogResponse,
    MeResponse,
    ProfileUpdateRequest,
    StreakResponse,
)

router = APIRouter(tags=["me"])


def _not_found() -> HTTPException:
    return HTTPException(status_code=404, detail={"code": "E_ACCOUNT_NOT_FOUND"})


@router.get("/hobbies", response_model=HobbyCatalogResponse)
async def hobby_catalog() -> HobbyCatalogResponse:
    return HobbyCatalogResponse(hobbies=list(HOBBY_CATALOG))


@router.get("/me", response_model=MeResponse)
async def get_me(
    account: CurrentAccount = Depends(get_current_account),
    clock: Clock = Depends(get_clock),
) -> MeResponse:
    try:
        async with SessionLocal() as session:
            user = await AccountService.get_account(session, user_id=account.id)
            view = await StreakService.get_view(session, user_id=account.id, now_utc=clock.now())
    except AccountNotFoundError as exc:
        raise _not_found() from exc
    return MeResponse(account=account_as_response(user), streak=streak_as_response(view))


@router.get("/me/streak", response_model=StreakResponse)
async def get_my_streak(
    account: CurrentAccount = Depends(get_current_account),
    clock: Clock = Depends(get_clock),
) -> StreakResponse:
    try:
        async with SessionLocal() as session:
            view = await StreakService.get_view(session, user_id=account.id, now_utc=clock.now())
    except AccountNotFoundError as exc:
        raise _not_found() from exc
    return streak_as_response(view)


@router.post("/me/streak/check-in", response_model=CheckInResponse)
async def check_in_today(
    payload: CheckInRequest | None = None,
    account: CurrentAccount = Depends(get_current_account),
    clock: Clock = Depends(get_clock),
) -> CheckInResponse:
    note = payload.note if payload is not None else None
    try:
        async with SessionLocal.begin() as session:
            state = await StreakService.check_in(
                session,
                user_id=account.id,
                now_utc=clock.now(),
                note=note,
            )
    except AlreadyCheckedInError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "E_ALREADY_CHECKED_IN", "message": ALREADY_CHECKED_IN_MESSAGE},
        ) from exc
    except AccountNotFoundError as exc:
        raise _not_found() from exc

    return CheckInResponse(
        current=state.current,
        best=state.best,
        last_check_in_date=state.last_check_in_date,
        description=state.description,
        message=f"You've checked in today! Current streak: {state.current} days.",
    )


@router.patch("/me/profile", response_model=AccountResponse)
async def update_profile(
    payload: ProfileUpdateRequest,
    account: CurrentAccount = Depends(get_current_account),
) -> AccountResponse:
    try:
        async with SessionLocal.begin() as session:
            user = await AccountService.update_profile(
                session,
                user_id=account.id,
                display_name=payload.display_name,
            )
    except InvalidProfileError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "E_INVALID_PROFILE", "message": str(exc)},
        ) from exc
    except AccountNotFoundError as exc:
        raise _not_found() from exc
    return account_as_response(user)


@router.put("/me/hobbies", response_model=AccountResponse)
async def update_hobbies(
    payload: HobbiesUpdateRequest,
    account: CurrentAccount = Depends(get_current_account),
) -> AccountResponse:
    try:
        async with SessionLocal.begin() as session:
            user = await AccountService.update_hobbies(
                session,
                user_id=account.id,
                hobbies=payload.hobbies,
            )
    except InvalidHobbyError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "E_UNKNOWN_HOBBY", "unknown": exc.unknown},
        ) from exc
    except AccountNotFoundError as exc:
        raise _not_found() from exc
    return account_as_response(user)
