from datetime import timedelta

DEFAULT_INACTIVITY_THRESHOLD_DAYS = 60
ONE_DAY = timedelta(days=1)
