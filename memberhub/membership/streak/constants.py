DEFAULT_CHECK_IN_TIMEZONE = "UTC"
ALREADY_CHECKED_IN_MESSAGE = "You've already checked in today. Come back tomorrow!"
MAX_CHECK_IN_NOTE_LENGTH = 500
