from memberhub.db.repo.streak_repo import StreakRepo
from memberhub.db.repo.users_repo import UsersRepo

__all__ = [
    "StreakRepo",
    "UsersRepo",
]
