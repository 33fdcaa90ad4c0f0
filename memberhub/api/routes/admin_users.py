from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse

from memberhub.api.deps import require_admin
from memberhub.core.clock import Clock, get_clock
from memberhub.db.session import SessionLocal
from memberhub.membership.accounts.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from memberhub.membership.accounts.errors import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    CannotDeleteSelfError,
    IdentityProviderError,
    InvalidHobbyError,
    PermissionDeniedError,
)
from memberhub.membership.accounts.service import AccountService
from memberhub.membership.accounts.types import CurrentAccount
from memberhub.services.identity import IdentityProvider, get_identity_provider

from .helpers import account_as_response
from .models import (
    AccountDeletionResponse,
    AccountListResponse,
    AccountResponse,
    AdminCreateUserRequest,
    AdminCreateUserResponse,
    RoleUpdateRequest,
)

router = APIRouter(prefix="/admin/users", tags=["admin"])


def _forbidden() -> HTTPException:
    return HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def _identity_provider_failed() -> HTTPException:
    return HTTPException(status_code=502, detail={"code": "E_IDENTITY_PROVIDER"})


@router.get("", response_model=AccountListResponse)
async def list_users(
    limit: int = Query(default=DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT),
    offset: int = Query(default=0, ge=0),
    admin: CurrentAccount = Depends(require_admin),
) -> AccountListResponse:
    try:
        async with SessionLocal() as session:
            users = await AccountService.list_accounts(session, actor=admin, limit=limit, offset=offset)
    except PermissionDeniedError as exc:
        raise _forbidden() from exc
    return AccountListResponse(users=[account_as_response(user) for user in users])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=AdminCreateUserResponse)
async def create_user(
    payload: AdminCreateUserRequest,
    admin: CurrentAccount = Depends(require_admin),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
    clock: Clock = Depends(get_clock),
) -> AdminCreateUserResponse:
    try:
        async with SessionLocal.begin() as session:
            result = await AccountService.create_account(
                session,
                actor=admin,
                identity_provider=identity_provider,
                email=payload.email,
                password=payload.password,
                role=payload.role,
                now_utc=clock.now(),
                hobbies=payload.hobbies,
            )
    except PermissionDeniedError as exc:
        raise _forbidden() from exc
    except AccountAlreadyExistsError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_ACCOUNT_EXISTS"}) from exc
    except InvalidHobbyError as exc:
        raise HTTPException(
            status_code=422,
            detail={"code": "E_UNKNOWN_HOBBY", "unknown": exc.unknown},
        ) from exc
    except IdentityProviderError as exc:
        raise _identity_provider_failed() from exc

    return AdminCreateUserResponse(
        user_id=result.user_id,
        email=result.email,
        role=result.role,
        password_reset_link_sent=result.password_reset_link is not None,
    )


@router.patch("/{user_id}/role", response_model=AccountResponse)
async def change_role(
    user_id: str,
    payload: RoleUpdateRequest,
    admin: CurrentAccount = Depends(require_admin),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> AccountResponse:
    try:
        async with SessionLocal.begin() as session:
            user = await AccountService.change_role(
                session,
                actor=admin,
                identity_provider=identity_provider,
                user_id=user_id,
                role=payload.role,
            )
    except PermissionDeniedError as exc:
        raise _forbidden() from exc
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_ACCOUNT_NOT_FOUND"}) from exc
    except IdentityProviderError as exc:
        raise _identity_provider_failed() from exc
    return account_as_response(user)


@router.delete("/{user_id}", response_model=AccountDeletionResponse)
async def delete_user(
    user_id: str,
    admin: CurrentAccount = Depends(require_admin),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> AccountDeletionResponse | JSONResponse:
    try:
        result = await AccountService.delete_account(
            actor=admin,
            identity_provider=identity_provider,
            user_id=user_id,
        )
    except PermissionDeniedError as exc:
        raise _forbidden() from exc
    except CannotDeleteSelfError as exc:
        raise HTTPException(status_code=409, detail={"code": "E_CANNOT_DELETE_SELF"}) from exc
    except AccountNotFoundError as exc:
        raise HTTPException(status_code=404, detail={"code": "E_ACCOUNT_NOT_FOUND"}) from exc

    response = AccountDeletionResponse(
        user_id=result.user_id,
        data_deleted=result.data_deleted,
        identity_deleted=result.identity_deleted,
        partial=result.partial,
        error=result.error,
    )
    if not result.succeeded:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=response.model_dump())
    return response
