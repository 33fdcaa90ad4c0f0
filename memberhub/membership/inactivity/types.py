from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class LoginRecord:
    user_id: str
    last_login_at: datetime | None


@dataclass(frozen=True, slots=True)
class InactiveUser:
    user_id: str
    days_since_login: int


@dataclass(frozen=True, slots=True)
class InactivityReport:
    generated_at: datetime
    threshold_days: int
    total_users_scanned: int
    inactive_users: tuple[InactiveUser, ...] = field(default_factory=tuple)
    unknown_login_user_ids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_inactive_users(self) -> int:
        return len(self.inactive_users)

    def as_dict(self) -> dict[str, object]:
        return {
            "generated_at": self.generated_at.isoformat(),
            "threshold_days": self.threshold_days,
            "total_users_scanned": self.total_users_scanned,
            "total_inactive_users": self.total_inactive_users,
            "inactive_users": [
                {"id": user.user_id, "days_since_login": user.days_since_login}
                for user in self.inactive_users
            ],
            "unknown_login_user_ids": list(self.unknown_login_user_ids),
        }
