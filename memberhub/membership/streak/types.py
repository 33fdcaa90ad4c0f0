from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True, slots=True)
class StreakState:
    current: int = 0
    best: int = 0
    last_check_in_date: date | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class StreakView:
    current: int
    effective_current: int
    best: int
    last_check_in_date: date | None
    description: str | None
    today: date
    can_check_in_today: bool
