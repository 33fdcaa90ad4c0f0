from __future__ import annotations

from collections.abc import Callable, Iterator

import pytest
from fastapi.testclient import TestClient

from memberhub.api.deps import get_current_account, get_current_identity
from memberhub.core.clock import FixedClock, get_clock
from memberhub.main import app
from memberhub.membership.accounts.types import CurrentAccount
from memberhub.services.identity import VerifiedIdentity, get_identity_provider
from tests.api.helpers import NOW, DummyIdentityProvider


@pytest.fixture
def identity_provider() -> DummyIdentityProvider:
    return DummyIdentityProvider()


@pytest.fixture
def api_client(identity_provider: DummyIdentityProvider) -> Iterator[TestClient]:
    app.dependency_overrides[get_clock] = lambda: FixedClock(NOW)
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def login_as(api_client: TestClient) -> Callable[[CurrentAccount], None]:
    def _login(account: CurrentAccount) -> None:
        app.dependency_overrides[get_current_account] = lambda: account

    return _login


@pytest.fixture
def sign_in_as(api_client: TestClient) -> Callable[[VerifiedIdentity], None]:
    def _sign_in(identity: VerifiedIdentity) -> None:
        app.dependency_overrides[get_current_identity] = lambda: identity

    return _sign_in
