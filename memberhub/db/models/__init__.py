from memberhub.db.models.streak_state import StreakState
from memberhub.db.models.users import User

__all__ = [
    "StreakState",
    "User",
]
