from __future__ import annotations

import asyncio

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from memberhub.db.repo.users_repo import UsersRepo
from memberhub.db.session import SessionLocal
from memberhub.membership.accounts.errors import IdentityProviderError, InvalidIdentityTokenError
from memberhub.membership.accounts.types import CurrentAccount, Role
from memberhub.services.identity import IdentityProvider, VerifiedIdentity, get_identity_provider

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": "E_UNAUTHORIZED"},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
) -> VerifiedIdentity:
    if credentials is None or not credentials.credentials:
        raise _unauthorized()
    try:
        return await asyncio.to_thread(identity_provider.verify_token, credentials.credentials)
    except InvalidIdentityTokenError as exc:
        raise _unauthorized() from exc
    except IdentityProviderError as exc:
        raise HTTPException(status_code=502, detail={"code": "E_IDENTITY_PROVIDER"}) from exc


async def get_current_account(
    identity: VerifiedIdentity = Depends(get_current_identity),
) -> CurrentAccount:
    async with SessionLocal() as session:
        user = await UsersRepo.get_by_id(session, identity.uid)
    if user is None:
        raise HTTPException(status_code=404, detail={"code": "E_ACCOUNT_NOT_FOUND"})
    return CurrentAccount(id=user.id, email=user.email, role=Role(user.role))


async def require_admin(account: CurrentAccount = Depends(get_current_account)) -> CurrentAccount:
    if not account.is_admin:
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})
    return account
