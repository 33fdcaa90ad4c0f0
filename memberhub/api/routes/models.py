from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from memberhub.membership.accounts.constants import MIN_PASSWORD_LENGTH
from memberhub.membership.accounts.types import Role
from memberhub.membership.streak.constants import MAX_CHECK_IN_NOTE_LENGTH


class AccountResponse(BaseModel):
    id: str
    email: str
    display_name: str | None = None
    role: Role
    hobbies: list[str]
    last_login_at: datetime | None = None
    created_at: datetime
    is_new_user: bool
    is_password_changed: bool
    is_inactive: bool


class StreakResponse(BaseModel):
    current: int = Field(ge=0)
    effective_current: int = Field(ge=0)
    best: int = Field(ge=0)
    last_check_in_date: date | None = None
    description: str | None = None
    today: date
    can_check_in_today: bool


class MeResponse(BaseModel):
    account: AccountResponse
    streak: StreakResponse


class CheckInRequest(BaseModel):
    note: str | None = Field(default=None, max_length=MAX_CHECK_IN_NOTE_LENGTH)


class CheckInResponse(BaseModel):
    current: int = Field(ge=0)
    best: int = Field(ge=0)
    last_check_in_date: date
    description: str | None = None
    message: str


class ProfileUpdateRequest(BaseModel):
    display_name: str = Field(min_length=1, max_length=200)


class HobbiesUpdateRequest(BaseModel):
    hobbies: list[str] = Field(default_factory=list, max_length=50)


class HobbyCatalogResponse(BaseModel):
    hobbies: list[str]


class AccountListResponse(BaseModel):
    users: list[AccountResponse]


class AdminCreateUserRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=MIN_PASSWORD_LENGTH, max_length=128)
    role: Role = Role.USER
    hobbies: list[str] = Field(default_factory=list, max_length=50)


class AdminCreateUserResponse(BaseModel):
    user_id: str
    email: str
    role: Role
    password_reset_link_sent: bool


class RoleUpdateRequest(BaseModel):
    role: Role


class AccountDeletionResponse(BaseModel):
    user_id: str
    data_deleted: bool
    identity_deleted: bool
    partial: bool
    error: str | None = None


class InactiveUserResponse(BaseModel):
    id: str
    days_since_login: int = Field(ge=0)


class InactivityScanResponse(BaseModel):
    generated_at: datetime
    threshold_days: int = Field(ge=1)
    total_users_scanned: int = Field(ge=0)
    total_inactive_users: int = Field(ge=0)
    inactive_users: list[InactiveUserResponse]
    unknown_login_user_ids: list[str]
    notification: dict[str, object] | None = None
