from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from memberhub.db.models.users import User


class UsersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, user_id: str) -> User | None:
        return await session.get(User, user_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, user_id: str) -> User | None:
        stmt = select(User).where(User.id == user_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_email(session: AsyncSession, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_all(session: AsyncSession, *, limit: int, offset: int = 0) -> list[User]:
        stmt = select(User).order_by(User.created_at.desc(), User.id).limit(limit).offset(offset)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_last_logins(session: AsyncSession) -> list[tuple[str, datetime | None]]:
        stmt = select(User.id, User.last_login_at).order_by(User.id)
        result = await session.execute(stmt)
        return [(row.id, row.last_login_at) for row in result]

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        user_id: str,
        email: str,
        display_name: str | None,
        role: str,
        created_at: datetime,
        last_login_at: datetime | None,
        is_password_changed: bool,
        hobbies: Sequence[str] = (),
    ) -> User:
        user = User(
            id=user_id,
            email=email,
            display_name=display_name,
            role=role,
            hobbies=list(hobbies),
            last_login_at=last_login_at,
            created_at=created_at,
            is_new_user=True,
            is_password_changed=is_password_changed,
            is_inactive=False,
            inactive_flagged_at=None,
        )
        session.add(user)
        await session.flush()
        return user

    @staticmethod
    async def mark_inactive(
        session: AsyncSession,
        *,
        user_ids: Sequence[str],
        flagged_at: datetime,
    ) -> int:
        ids = tuple(dict.fromkeys(user_ids))
        if not ids:
            return 0
        stmt = (
            update(User)
            .where(User.id.in_(ids))
            .values(is_inactive=True, inactive_flagged_at=flagged_at)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0

    @staticmethod
    async def delete_by_id(session: AsyncSession, user_id: str) -> int:
        stmt = delete(User).where(User.id == user_id)
        result = await session.execute(stmt)
        return result.rowcount or 0
