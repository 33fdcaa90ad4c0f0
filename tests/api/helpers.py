from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

from memberhub.membership.accounts.types import CurrentAccount, Role
from memberhub.services.identity import VerifiedIdentity

NOW = datetime(2026, 10, 19, 9, 15, tzinfo=timezone.utc)
ADMIN = CurrentAccount(id="admin-1", email="admin@example.com", role=Role.ADMIN)
MEMBER = CurrentAccount(id="member-1", email="member@example.com", role=Role.USER)


class DummySessionContext:
    async def __aenter__(self) -> object:
        return object()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class DummySessionLocal:
    def __call__(self) -> DummySessionContext:
        return DummySessionContext()

    def begin(self) -> DummySessionContext:
        return DummySessionContext()


class DummyIdentityProvider:
    def __init__(self) -> None:
        self.calls: list[tuple[str, object]] = []

    def verify_token(self, token: str) -> VerifiedIdentity:
        self.calls.append(("verify_token", token))
        return VerifiedIdentity(uid="member-1", email="member@example.com")

    def create_user(self, *, email: str, password: str) -> str:
        self.calls.append(("create_user", email))
        return "uid-new"

    def set_role_claim(self, uid: str, *, role: str) -> None:
        self.calls.append(("set_role_claim", (uid, role)))

    def delete_user(self, uid: str) -> None:
        self.calls.append(("delete_user", uid))

    def generate_password_reset_link(self, email: str) -> str:
        return "https://auth.example.com/reset"


def make_user(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "id": "member-1",
        "email": "member@example.com",
        "display_name": "Member",
        "role": "user",
        "hobbies": [],
        "last_login_at": NOW,
        "created_at": datetime(2026, 1, 5, tzinfo=timezone.utc),
        "is_new_user": True,
        "is_password_changed": False,
        "is_inactive": False,
    }
    values.update(overrides)
    return SimpleNamespace(**values)
