from __future__ import annotations

from datetime import date, datetime
from functools import lru_cache
from zoneinfo import ZoneInfo


@lru_cache(maxsize=64)
def _zone(tz_name: str) -> ZoneInfo:
    return ZoneInfo(tz_name)


def local_check_in_date(now: datetime, tz_name: str) -> date:
    """Calendar date of ``now`` at midnight boundaries of ``tz_name``.

    Naive datetimes are taken as already expressed in ``tz_name``.
    """
    if now.tzinfo is None:
        return now.date()
    return now.astimezone(_zone(tz_name)).date()
