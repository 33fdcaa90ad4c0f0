from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from memberhub.api.deps import get_current_identity
from memberhub.core.clock import Clock, get_clock
from memberhub.db.session import SessionLocal
from memberhub.membership.accounts.errors import AccountAlreadyExistsError, AccountNotFoundError
from memberhub.membership.accounts.service import AccountService
from memberhub.services.identity import VerifiedIdentity

from .helpers import account_as_response
from .models import AccountResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=AccountResponse)
async def register(
    identity: VerifiedIdentity = Depends(get_current_identity),
    clock: Clock = Depends(get_clock),
) -> AccountResponse:
    try:
        async with SessionLocal.begin() as session:
            user = await AccountService.register(session, identity=identity, now_utc=clock.now())
    except AccountAlreadyExistsError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_ACCOUNT_EXISTS"}) from exc
    return account_as_response(user)


@router.post("/session", response_model=AccountResponse)
async def start_session(
    identity: VerifiedIdentity = Depends(get_current_identity),
    clock: Clock = Depends(get_clock),
) -> AccountResponse:
    try:
        async with SessionLocal.begin() as session:
            user = await AccountService.start_session(session, identity=identity, now_utc=clock.now())
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_ACCOUNT_NOT_FOUND"}) from exc
    return account_as_response(user)
