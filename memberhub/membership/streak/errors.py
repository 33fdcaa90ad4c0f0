class StreakError(Exception):
    pass


class AlreadyCheckedInError(StreakError):
    pass
