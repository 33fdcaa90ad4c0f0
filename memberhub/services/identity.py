from __future__ import annotations

import threading
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Protocol

import firebase_admin
import structlog
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError

from memberhub.core.config import get_settings
from memberhub.membership.accounts.errors import (
    AccountAlreadyExistsError,
    AccountNotFoundError,
    IdentityProviderError,
    InvalidIdentityTokenError,
)

logger = structlog.get_logger(__name__)

FIREBASE_APP_NAME = "memberhub"
ADMIN_CLAIM = "admin"
FEDERATED_SIGN_IN_PROVIDERS = frozenset({"google.com", "apple.com", "github.com", "microsoft.com"})


@dataclass(frozen=True, slots=True)
class VerifiedIdentity:
    uid: str
    email: str
    display_name: str | None = None
    sign_in_provider: str | None = None

    @property
    def is_federated(self) -> bool:
        return self.sign_in_provider in FEDERATED_SIGN_IN_PROVIDERS


class IdentityProvider(Protocol):
    def verify_token(self, token: str) -> VerifiedIdentity: ...

    def create_user(self, *, email: str, password: str) -> str: ...

    def set_role_claim(self, uid: str, *, role: str) -> None: ...

    def delete_user(self, uid: str) -> None: ...

    def generate_password_reset_link(self, email: str) -> str: ...


def _identity_from_claims(claims: dict[str, Any]) -> VerifiedIdentity:
    uid = claims.get("uid") or claims.get("sub")
    email = claims.get("email")
    if not uid or not email:
        raise InvalidIdentityTokenError("token is missing uid or email")

    firebase_claims = claims.get("firebase") or {}
    return VerifiedIdentity(
        uid=str(uid),
        email=str(email).strip().lower(),
        display_name=claims.get("name"),
        sign_in_provider=firebase_claims.get("sign_in_provider"),
    )


class FirebaseIdentityProvider:
    """Firebase Auth through the Admin SDK.

    The SDK app is created on first use so importing this module never
    requires credentials.
    """

    def __init__(self, *, project_id: str, service_account_json: str) -> None:
        self._project_id = project_id
        self._service_account_json = service_account_json
        self._app: firebase_admin.App | None = None
        self._lock = threading.Lock()

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app
        with self._lock:
            if self._app is None:
                try:
                    self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
                except ValueError:
                    credential = (
                        credentials.Certificate(self._service_account_json)
                        if self._service_account_json
                        else credentials.ApplicationDefault()
                    )
                    options = {"projectId": self._project_id} if self._project_id else None
                    self._app = firebase_admin.initialize_app(credential, options, name=FIREBASE_APP_NAME)
        return self._app

    def verify_token(self, token: str) -> VerifiedIdentity:
        try:
            claims = auth.verify_id_token(token, app=self._get_app())
        except (
            auth.InvalidIdTokenError,
            auth.ExpiredIdTokenError,
            auth.RevokedIdTokenError,
            auth.UserDisabledError,
            ValueError,
        ) as exc:
            raise InvalidIdentityTokenError(str(exc)) from exc
        except FirebaseError as exc:
            raise IdentityProviderError(str(exc)) from exc
        return _identity_from_claims(claims)

    def create_user(self, *, email: str, password: str) -> str:
        try:
            record = auth.create_user(
                email=email,
                password=password,
                email_verified=False,
                app=self._get_app(),
            )
        except auth.EmailAlreadyExistsError as exc:
            raise AccountAlreadyExistsError(email) from exc
        except (FirebaseError, ValueError) as exc:
            raise IdentityProviderError(str(exc)) from exc
        return record.uid

    def set_role_claim(self, uid: str, *, role: str) -> None:
        try:
            auth.set_custom_user_claims(uid, {ADMIN_CLAIM: role == "admin"}, app=self._get_app())
        except auth.UserNotFoundError as exc:
            raise AccountNotFoundError(uid) from exc
        except FirebaseError as exc:
            raise IdentityProviderError(str(exc)) from exc

    def delete_user(self, uid: str) -> None:
        try:
            auth.delete_user(uid, app=self._get_app())
        except auth.UserNotFoundError as exc:
            raise AccountNotFoundError(uid) from exc
        except FirebaseError as exc:
            raise IdentityProviderError(str(exc)) from exc

    def generate_password_reset_link(self, email: str) -> str:
        try:
            return auth.generate_password_reset_link(email, app=self._get_app())
        except FirebaseError as exc:
            raise IdentityProviderError(str(exc)) from exc


@lru_cache(maxsize=1)
def get_identity_provider() -> IdentityProvider:
    settings = get_settings()
    return FirebaseIdentityProvider(
        project_id=settings.firebase_project_id,
        service_account_json=settings.firebase_service_account_json,
    )
