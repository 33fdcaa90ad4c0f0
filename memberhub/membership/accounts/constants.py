HOBBY_CATALOG: tuple[str, ...] = (
    "Reading",
    "Fitness",
    "Cooking",
    "Gaming",
    "Art",
    "Music",
    "Gardening",
    "Travel",
    "Photography",
    "Technology",
)
MIN_DISPLAY_NAME_LENGTH = 2
MAX_DISPLAY_NAME_LENGTH = 80
MIN_PASSWORD_LENGTH = 6
DEFAULT_LIST_LIMIT = 100
MAX_LIST_LIMIT = 500
