from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass(frozen=True, slots=True)
class CurrentAccount:
    id: str
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True, slots=True)
class AccountCreateResult:
    user_id: str
    email: str
    role: Role
    password_reset_link: str | None


@dataclass(frozen=True, slots=True)
class AccountDeletionResult:
    user_id: str
    data_deleted: bool
    identity_deleted: bool
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @property
    def partial(self) -> bool:
        # one store lost the record, the other still holds it
        return not self.succeeded and self.data_deleted
