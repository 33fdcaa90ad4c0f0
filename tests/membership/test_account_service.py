from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from memberhub.membership.accounts import service as account_service
from memberhub.membership.accounts.errors import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    CannotDeleteSelfError,
    IdentityProviderError,
    InvalidHobbyError,
    PermissionDeniedError,
)
from memberhub.membership.accounts.service import AccountService
from memberhub.membership.accounts.types import CurrentAccount, Role
from memberhub.services.identity import VerifiedIdentity

UTC = timezone.utc
NOW = datetime(2026, 10, 19, 8, 0, tzinfo=UTC)
ADMIN = CurrentAccount(id="admin-1", email="admin@example.com", role=Role.ADMIN)
MEMBER = CurrentAccount(id="member-1", email="member@example.com", role=Role.USER)


class _Session:
    def __init__(self) -> None:
        self.flushes = 0

    async def flush(self) -> None:
        self.flushes += 1


class _SessionContext:
    def __init__(self, session: object) -> None:
        self._session = session

    async def __aenter__(self) -> object:
        return self._session

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class _IdentityProvider:
    def __init__(
        self,
        *,
        delete_error: Exception | None = None,
        claim_error: Exception | None = None,
        reset_error: Exception | None = None,
    ) -> None:
        self.calls: list[tuple[str, object]] = []
        self._delete_error = delete_error
        self._claim_error = claim_error
        self._reset_error = reset_error

    def create_user(self, *, email: str, password: str) -> str:
        self.calls.append(("create_user", email))
        return "uid-new"

    def set_role_claim(self, uid: str, *, role: str) -> None:
        self.calls.append(("set_role_claim", (uid, role)))
        if self._claim_error is not None:
            raise self._claim_error

    def delete_user(self, uid: str) -> None:
        self.calls.append(("delete_user", uid))
        if self._delete_error is not None:
            raise self._delete_error

    def generate_password_reset_link(self, email: str) -> str:
        self.calls.append(("generate_password_reset_link", email))
        if self._reset_error is not None:
            raise self._reset_error
        return "https://auth.example.com/reset?oob=1"


def _user(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "id": "u1",
        "email": "ana@example.com",
        "display_name": "Ana",
        "role": "user",
        "hobbies": [],
        "last_login_at": None,
        "is_new_user": True,
        "is_inactive": False,
        "inactive_flagged_at": None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _patch_delete(monkeypatch: pytest.MonkeyPatch, rows_deleted: int) -> list[str]:
    deleted: list[str] = []

    async def fake_delete_by_id(session, user_id: str) -> int:  # noqa: ANN001
        deleted.append(user_id)
        return rows_deleted

    monkeypatch.setattr(account_service.UsersRepo, "delete_by_id", fake_delete_by_id)
    monkeypatch.setattr(
        account_service,
        "SessionLocal",
        SimpleNamespace(begin=lambda: _SessionContext(object())),
    )
    return deleted


@pytest.mark.asyncio
async def test_delete_account_removes_data_then_identity(monkeypatch) -> None:
    deleted = _patch_delete(monkeypatch, rows_deleted=1)
    provider = _IdentityProvider()

    result = await AccountService.delete_account(actor=ADMIN, identity_provider=provider, user_id="u1")

    assert deleted == ["u1"]
    assert provider.calls == [("delete_user", "u1")]
    assert result.succeeded is True
    assert result.partial is False


@pytest.mark.asyncio
async def test_delete_account_reports_partial_when_identity_step_fails(monkeypatch) -> None:
    _patch_delete(monkeypatch, rows_deleted=1)
    provider = _IdentityProvider(delete_error=IdentityProviderError("quota exceeded"))

    result = await AccountService.delete_account(actor=ADMIN, identity_provider=provider, user_id="u1")

    assert result.data_deleted is True
    assert result.identity_deleted is False
    assert result.partial is True
    assert result.error == "quota exceeded"


@pytest.mark.asyncio
async def test_delete_account_tolerates_missing_identity_when_data_existed(monkeypatch) -> None:
    _patch_delete(monkeypatch, rows_deleted=1)
    provider = _IdentityProvider(delete_error=AccountNotFoundError("u1"))

    result = await AccountService.delete_account(actor=ADMIN, identity_provider=provider, user_id="u1")

    assert result.succeeded is True


@pytest.mark.asyncio
async def test_delete_account_raises_not_found_when_neither_store_has_user(monkeypatch) -> None:
    _patch_delete(monkeypatch, rows_deleted=0)
    provider = _IdentityProvider(delete_error=AccountNotFoundError("ghost"))

    with pytest.raises(AccountNotFoundError):
        await AccountService.delete_account(actor=ADMIN, identity_provider=provider, user_id="ghost")


@pytest.mark.asyncio
async def test_delete_account_rejects_self_and_non_admin(monkeypatch) -> None:
    deleted = _patch_delete(monkeypatch, rows_deleted=1)
    provider = _IdentityProvider()

    with pytest.raises(CannotDeleteSelfError):
        await AccountService.delete_account(actor=ADMIN, identity_provider=provider, user_id=ADMIN.id)
    with pytest.raises(PermissionDeniedError):
        await AccountService.delete_account(actor=MEMBER, identity_provider=provider, user_id="u1")

    assert deleted == []
    assert provider.calls == []


@pytest.mark.asyncio
async def test_create_account_rolls_back_identity_when_claim_fails(monkeypatch) -> None:
    async def fake_get_by_email(session, email: str):  # noqa: ANN001
        return None

    monkeypatch.setattr(account_service.UsersRepo, "get_by_email", fake_get_by_email)
    provider = _IdentityProvider(claim_error=IdentityProviderError("claims unavailable"))

    with pytest.raises(IdentityProviderError):
        await AccountService.create_account(
            _Session(),
            actor=ADMIN,
            identity_provider=provider,
            email="New@Example.com",
            password="secret-1",
            role=Role.ADMIN,
            now_utc=NOW,
        )

    assert provider.calls == [
        ("create_user", "new@example.com"),
        ("set_role_claim", ("uid-new", "admin")),
        ("delete_user", "uid-new"),
    ]


@pytest.mark.asyncio
async def test_create_account_returns_result_without_reset_link_on_link_failure(monkeypatch) -> None:
    created: list[dict[str, object]] = []

    async def fake_get_by_email(session, email: str):  # noqa: ANN001
        return None

    async def fake_create_with_streak(session, **kwargs):  # noqa: ANN001
        created.append(kwargs)
        return _user(id=kwargs["user_id"], email=kwargs["email"], role=kwargs["role"].value)

    monkeypatch.setattr(account_service.UsersRepo, "get_by_email", fake_get_by_email)
    monkeypatch.setattr(AccountService, "_create_with_streak", staticmethod(fake_create_with_streak))
    provider = _IdentityProvider(reset_error=IdentityProviderError("smtp down"))

    result = await AccountService.create_account(
        _Session(),
        actor=ADMIN,
        identity_provider=provider,
        email="new@example.com",
        password="secret-1",
        role=Role.USER,
        now_utc=NOW,
    )

    assert result.user_id == "uid-new"
    assert result.role is Role.USER
    assert result.password_reset_link is None
    assert created[0]["last_login_at"] is None
    assert created[0]["is_password_changed"] is False


@pytest.mark.asyncio
async def test_create_account_rejects_existing_email_before_touching_identity(monkeypatch) -> None:
    async def fake_get_by_email(session, email: str):  # noqa: ANN001
        return _user(email=email)

    monkeypatch.setattr(account_service.UsersRepo, "get_by_email", fake_get_by_email)
    provider = _IdentityProvider()

    with pytest.raises(AccountAlreadyExistsError):
        await AccountService.create_account(
            _Session(),
            actor=ADMIN,
            identity_provider=provider,
            email="ana@example.com",
            password="secret-1",
            role=Role.USER,
            now_utc=NOW,
        )

    assert provider.calls == []


@pytest.mark.asyncio
async def test_start_session_updates_last_login_and_clears_inactive_flag(monkeypatch) -> None:
    user = _user(is_inactive=True, inactive_flagged_at=NOW)

    async def fake_get_for_update(session, user_id: str):  # noqa: ANN001
        return user

    monkeypatch.setattr(account_service.UsersRepo, "get_by_id_for_update", fake_get_for_update)
    session = _Session()

    result = await AccountService.start_session(
        session,
        identity=VerifiedIdentity(uid="u1", email="ana@example.com", sign_in_provider="password"),
        now_utc=NOW,
    )

    assert result is user
    assert user.last_login_at == NOW
    assert user.is_inactive is False
    assert user.inactive_flagged_at is None
    assert session.flushes == 1


@pytest.mark.asyncio
async def test_start_session_provisions_federated_user_on_first_login(monkeypatch) -> None:
    registered: list[VerifiedIdentity] = []

    async def fake_get_for_update(session, user_id: str):  # noqa: ANN001
        return None

    async def fake_register(session, *, identity, now_utc):  # noqa: ANN001
        registered.append(identity)
        return _user(id=identity.uid)

    monkeypatch.setattr(account_service.UsersRepo, "get_by_id_for_update", fake_get_for_update)
    monkeypatch.setattr(AccountService, "register", staticmethod(fake_register))
    identity = VerifiedIdentity(uid="g-1", email="g@example.com", sign_in_provider="google.com")

    result = await AccountService.start_session(_Session(), identity=identity, now_utc=NOW)

    assert result.id == "g-1"
    assert registered == [identity]


@pytest.mark.asyncio
async def test_start_session_for_unknown_password_user_raises_not_found(monkeypatch) -> None:
    async def fake_get_for_update(session, user_id: str):  # noqa: ANN001
        return None

    monkeypatch.setattr(account_service.UsersRepo, "get_by_id_for_update", fake_get_for_update)

    with pytest.raises(AccountNotFoundError):
        await AccountService.start_session(
            _Session(),
            identity=VerifiedIdentity(uid="u9", email="x@example.com", sign_in_provider="password"),
            now_utc=NOW,
        )


@pytest.mark.asyncio
async def test_register_uses_email_local_part_when_identity_has_no_name(monkeypatch) -> None:
    captured: dict[str, object] = {}

    async def fake_create_with_streak(session, **kwargs):  # noqa: ANN001
        captured.update(kwargs)
        return _user(id=kwargs["user_id"])

    monkeypatch.setattr(AccountService, "_create_with_streak", staticmethod(fake_create_with_streak))

    await AccountService.register(
        _Session(),
        identity=VerifiedIdentity(uid="u2", email="Maria.Lopez@Example.com", sign_in_provider="password"),
        now_utc=NOW,
    )

    assert captured["email"] == "maria.lopez@example.com"
    assert captured["display_name"] == "maria.lopez"
    assert captured["role"] is Role.USER
    assert captured["last_login_at"] == NOW
    assert captured["is_password_changed"] is False


@pytest.mark.asyncio
async def test_update_hobbies_stores_catalog_order_and_clears_new_user_flag(monkeypatch) -> None:
    user = _user()

    async def fake_get_for_update(session, user_id: str):  # noqa: ANN001
        return user

    monkeypatch.setattr(account_service.UsersRepo, "get_by_id_for_update", fake_get_for_update)

    await AccountService.update_hobbies(_Session(), user_id="u1", hobbies=["cooking", "Reading"])

    assert user.hobbies == ["Reading", "Cooking"]
    assert user.is_new_user is False


@pytest.mark.asyncio
async def test_update_hobbies_rejects_unknown_entries_before_loading_user(monkeypatch) -> None:
    async def fake_get_for_update(session, user_id: str):  # noqa: ANN001
        raise AssertionError("should not load the user")

    monkeypatch.setattr(account_service.UsersRepo, "get_by_id_for_update", fake_get_for_update)

    with pytest.raises(InvalidHobbyError) as exc_info:
        await AccountService.update_hobbies(_Session(), user_id="u1", hobbies=["Cooking", "Skydiving"])

    assert exc_info.value.unknown == ["Skydiving"]


@pytest.mark.asyncio
async def test_change_role_updates_record_before_claim(monkeypatch) -> None:
    user = _user(role="user")
    provider = _IdentityProvider()

    async def fake_get_for_update(session, user_id: str):  # noqa: ANN001
        return user

    monkeypatch.setattr(account_service.UsersRepo, "get_by_id_for_update", fake_get_for_update)

    await AccountService.change_role(
        _Session(),
        actor=ADMIN,
        identity_provider=provider,
        user_id="u1",
        role=Role.ADMIN,
    )

    assert user.role == "admin"
    assert provider.calls == [("set_role_claim", ("u1", "admin"))]


@pytest.mark.asyncio
async def test_delete_account_failure_without_data_row_reports_nothing_deleted(monkeypatch) -> None:
    _patch_delete(monkeypatch, rows_deleted=0)
    provider = _IdentityProvider(delete_error=IdentityProviderError("quota exceeded"))

    result = await AccountService.delete_account(actor=ADMIN, identity_provider=provider, user_id="ghost")

    assert result.data_deleted is False
    assert result.identity_deleted is False
    assert result.succeeded is False
    assert result.partial is False
    assert result.error == "quota exceeded"


@pytest.mark.asyncio
async def test_delete_account_with_only_identity_record_succeeds(monkeypatch) -> None:
    _patch_delete(monkeypatch, rows_deleted=0)
    provider = _IdentityProvider()

    result = await AccountService.delete_account(actor=ADMIN, identity_provider=provider, user_id="u1")

    assert result.data_deleted is False
    assert result.identity_deleted is True
    assert result.succeeded is True
    assert result.partial is False


@pytest.mark.asyncio
async def test_create_account_keeps_original_error_when_compensation_fails(monkeypatch) -> None:
    async def fake_get_by_email(session, email: str):  # noqa: ANN001
        return None

    monkeypatch.setattr(account_service.UsersRepo, "get_by_email", fake_get_by_email)
    provider = _IdentityProvider(
        claim_error=IdentityProviderError("claims unavailable"),
        delete_error=IdentityProviderError("delete unavailable"),
    )

    with pytest.raises(IdentityProviderError, match="claims unavailable"):
        await AccountService.create_account(
            _Session(),
            actor=ADMIN,
            identity_provider=provider,
            email="new@example.com",
            password="secret-1",
            role=Role.USER,
            now_utc=NOW,
        )

    assert provider.calls[-1] == ("delete_user", "uid-new")


@pytest.mark.asyncio
async def test_create_account_stores_normalized_initial_hobbies(monkeypatch) -> None:
    created: list[dict[str, object]] = []

    async def fake_get_by_email(session, email: str):  # noqa: ANN001
        return None

    async def fake_create_with_streak(session, **kwargs):  # noqa: ANN001
        created.append(kwargs)
        return _user(id=kwargs["user_id"])

    monkeypatch.setattr(account_service.UsersRepo, "get_by_email", fake_get_by_email)
    monkeypatch.setattr(AccountService, "_create_with_streak", staticmethod(fake_create_with_streak))

    await AccountService.create_account(
        _Session(),
        actor=ADMIN,
        identity_provider=_IdentityProvider(),
        email="new@example.com",
        password="secret-1",
        role=Role.USER,
        now_utc=NOW,
        hobbies=["music", "Art", "Music"],
    )

    assert created[0]["hobbies"] == ["Art", "Music"]


@pytest.mark.asyncio
async def test_create_account_rejects_unknown_hobby_before_identity_call(monkeypatch) -> None:
    provider = _IdentityProvider()

    with pytest.raises(InvalidHobbyError):
        await AccountService.create_account(
            _Session(),
            actor=ADMIN,
            identity_provider=provider,
            email="new@example.com",
            password="secret-1",
            role=Role.USER,
            now_utc=NOW,
            hobbies=["Skydiving"],
        )

    assert provider.calls == []
