from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.db.models.users import User
from memberhub.db.repo.streak_repo import StreakRepo
from memberhub.db.repo.users_repo import UsersRepo
from memberhub.db.session import SessionLocal
from memberhub.membership.accounts.constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from memberhub.membership.accounts.errors import (
    AccountAlreadyExistsError,
    AccountError,
    AccountNotFoundError,
    CannotDeleteSelfError,
)
from memberhub.membership.accounts.rules import (
    default_display_name,
    ensure_admin,
    normalize_display_name,
    normalize_email,
    normalize_hobbies,
)
from memberhub.membership.accounts.types import (
    AccountCreateResult,
    AccountDeletionResult,
    CurrentAccount,
    Role,
)
from memberhub.services.identity import IdentityProvider, VerifiedIdentity

logger = structlog.get_logger(__name__)


class AccountService:
    @staticmethod
    async def _create_with_streak(
        session: AsyncSession,
        *,
        user_id: str,
        email: str,
        display_name: str | None,
        role: Role,
        now_utc: datetime,
        last_login_at: datetime | None,
        is_password_changed: bool,
        hobbies: Sequence[str] = (),
    ) -> User:
        if await UsersRepo.get_by_id(session, user_id) is not None:
            raise AccountAlreadyExistsError(user_id)
        if await UsersRepo.get_by_email(session, email) is not None:
            raise AccountAlreadyExistsError(email)

        user = await UsersRepo.create(
            session,
            user_id=user_id,
            email=email,
            display_name=display_name,
            role=role.value,
            created_at=now_utc,
            last_login_at=last_login_at,
            is_password_changed=is_password_changed,
            hobbies=hobbies,
        )
        await StreakRepo.create_default_state(session, user_id=user_id, now_utc=now_utc)
        return user

    @staticmethod
    async def _get_for_update(session: AsyncSession, user_id: str) -> User:
        user = await UsersRepo.get_by_id_for_update(session, user_id)
        if user is None:
            raise AccountNotFoundError(user_id)
        return user

    @staticmethod
    async def get_account(session: AsyncSession, *, user_id: str) -> User:
        user = await UsersRepo.get_by_id(session, user_id)
        if user is None:
            raise AccountNotFoundError(user_id)
        return user

    @staticmethod
    async def register(
        session: AsyncSession,
        *,
        identity: VerifiedIdentity,
        now_utc: datetime,
    ) -> User:
        email = normalize_email(identity.email)
        user = await AccountService._create_with_streak(
            session,
            user_id=identity.uid,
            email=email,
            display_name=identity.display_name or default_display_name(email),
            role=Role.USER,
            now_utc=now_utc,
            last_login_at=now_utc,
            is_password_changed=identity.is_federated,
        )
        logger.info("account_registered", user_id=user.id, federated=identity.is_federated)
        return user

    @staticmethod
    async def start_session(
        session: AsyncSession,
        *,
        identity: VerifiedIdentity,
        now_utc: datetime,
    ) -> User:
        user = await UsersRepo.get_by_id_for_update(session, identity.uid)
        if user is None:
            # federated sign-in provisions the account on first login
            if not identity.is_federated:
                raise AccountNotFoundError(identity.uid)
            return await AccountService.register(session, identity=identity, now_utc=now_utc)

        was_inactive = user.is_inactive
        user.last_login_at = now_utc
        user.is_inactive = False
        user.inactive_flagged_at = None
        await session.flush()
        logger.info("account_session_started", user_id=user.id, reactivated=was_inactive)
        return user

    @staticmethod
    async def update_profile(session: AsyncSession, *, user_id: str, display_name: str) -> User:
        name = normalize_display_name(display_name)
        user = await AccountService._get_for_update(session, user_id)
        user.display_name = name
        await session.flush()
        return user

    @staticmethod
    async def update_hobbies(session: AsyncSession, *, user_id: str, hobbies: Sequence[str]) -> User:
        selected = normalize_hobbies(hobbies)
        user = await AccountService._get_for_update(session, user_id)
        user.hobbies = selected
        user.is_new_user = False
        await session.flush()
        return user

    @staticmethod
    async def list_accounts(
        session: AsyncSession,
        *,
        actor: CurrentAccount,
        limit: int = DEFAULT_LIST_LIMIT,
        offset: int = 0,
    ) -> list[User]:
        ensure_admin(actor)
        return await UsersRepo.list_all(
            session,
            limit=max(1, min(MAX_LIST_LIMIT, int(limit))),
            offset=max(0, int(offset)),
        )

    @staticmethod
    async def create_account(
        session: AsyncSession,
        *,
        actor: CurrentAccount,
        identity_provider: IdentityProvider,
        email: str,
        password: str,
        role: Role,
        now_utc: datetime,
        hobbies: Sequence[str] = (),
    ) -> AccountCreateResult:
        ensure_admin(actor)
        email = normalize_email(email)
        selected_hobbies = normalize_hobbies(hobbies)
        if await UsersRepo.get_by_email(session, email) is not None:
            raise AccountAlreadyExistsError(email)

        user_id = await asyncio.to_thread(identity_provider.create_user, email=email, password=password)
        try:
            await asyncio.to_thread(identity_provider.set_role_claim, user_id, role=role.value)
            await AccountService._create_with_streak(
                session,
                user_id=user_id,
                email=email,
                display_name=None,
                role=role,
                now_utc=now_utc,
                last_login_at=None,
                is_password_changed=False,
                hobbies=selected_hobbies,
            )
        except Exception:
            logger.exception("account_create_rolled_back", user_id=user_id, actor_id=actor.id)
            try:
                await asyncio.to_thread(identity_provider.delete_user, user_id)
            except Exception:
                logger.exception("account_create_compensation_failed", user_id=user_id, actor_id=actor.id)
            raise

        reset_link: str | None = None
        try:
            reset_link = await asyncio.to_thread(identity_provider.generate_password_reset_link, email)
        except AccountError:
            logger.warning("account_password_reset_link_failed", user_id=user_id)

        logger.info("account_created_by_admin", user_id=user_id, role=role.value, actor_id=actor.id)
        return AccountCreateResult(
            user_id=user_id,
            email=email,
            role=role,
            password_reset_link=reset_link,
        )

    @staticmethod
    async def change_role(
        session: AsyncSession,
        *,
        actor: CurrentAccount,
        identity_provider: IdentityProvider,
        user_id: str,
        role: Role,
    ) -> User:
        ensure_admin(actor)
        user = await AccountService._get_for_update(session, user_id)
        previous_role = user.role
        user.role = role.value
        await session.flush()
        await asyncio.to_thread(identity_provider.set_role_claim, user_id, role=role.value)
        logger.info(
            "account_role_changed",
            user_id=user_id,
            previous_role=previous_role,
            role=role.value,
            actor_id=actor.id,
        )
        return user

    @staticmethod
    async def delete_account(
        *,
        actor: CurrentAccount,
        identity_provider: IdentityProvider,
        user_id: str,
    ) -> AccountDeletionResult:
        """Delete the data record, then the identity record.

        The two stores share no transaction, so each step commits on its own
        and the result reports which of them went through.
        """
        ensure_admin(actor)
        if actor.id == user_id:
            raise CannotDeleteSelfError(user_id)

        async with SessionLocal.begin() as session:
            rows_deleted = await UsersRepo.delete_by_id(session, user_id)

        try:
            await asyncio.to_thread(identity_provider.delete_user, user_id)
        except AccountNotFoundError:
            if rows_deleted == 0:
                raise
            logger.warning("account_delete_identity_already_absent", user_id=user_id, actor_id=actor.id)
        except AccountError as exc:
            result = AccountDeletionResult(
                user_id=user_id,
                data_deleted=rows_deleted > 0,
                identity_deleted=False,
                error=str(exc) or exc.__class__.__name__,
            )
            logger.error(
                "account_delete_partial_failure" if result.partial else "account_delete_failed",
                user_id=user_id,
                actor_id=actor.id,
                data_rows_deleted=rows_deleted,
                error=result.error,
            )
            return result

        logger.info(
            "account_deleted",
            user_id=user_id,
            actor_id=actor.id,
            data_rows_deleted=rows_deleted,
        )
        return AccountDeletionResult(user_id=user_id, data_deleted=rows_deleted > 0, identity_deleted=True)
