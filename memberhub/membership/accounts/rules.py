from __future__ import annotations

from collections.abc import Iterable

from memberhub.membership.accounts.constants import (
    HOBBY_CATALOG,
    MAX_DISPLAY_NAME_LENGTH,
    MIN_DISPLAY_NAME_LENGTH,
)
from memberhub.membership.accounts.errors import InvalidHobbyError, InvalidProfileError, PermissionDeniedError
from memberhub.membership.accounts.types import CurrentAccount

_CATALOG_BY_KEY = {hobby.casefold(): hobby for hobby in HOBBY_CATALOG}


def normalize_email(email: str) -> str:
    return email.strip().lower()


def default_display_name(email: str) -> str:
    return email.split("@", maxsplit=1)[0]


def normalize_display_name(value: str) -> str:
    name = " ".join(value.split())
    if len(name) < MIN_DISPLAY_NAME_LENGTH:
        raise InvalidProfileError(f"display name must be at least {MIN_DISPLAY_NAME_LENGTH} characters")
    if len(name) > MAX_DISPLAY_NAME_LENGTH:
        raise InvalidProfileError(f"display name must be at most {MAX_DISPLAY_NAME_LENGTH} characters")
    return name


def normalize_hobbies(hobbies: Iterable[str]) -> list[str]:
    """Map hobbies onto catalog spelling, deduplicated, in catalog order."""
    selected: set[str] = set()
    unknown: list[str] = []
    for raw in hobbies:
        hobby = _CATALOG_BY_KEY.get(raw.strip().casefold())
        if hobby is None:
            unknown.append(raw)
            continue
        selected.add(hobby)

    if unknown:
        raise InvalidHobbyError(unknown)
    return [hobby for hobby in HOBBY_CATALOG if hobby in selected]


def ensure_admin(actor: CurrentAccount) -> None:
    if not actor.is_admin:
        raise PermissionDeniedError(actor.id)
