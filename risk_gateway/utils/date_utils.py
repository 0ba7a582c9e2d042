"""Date manipulation utilities"""

from datetime import datetime
from zoneinfo import ZoneInfo


def now_in_timezone(tz_name: str) -> datetime:
    """Current wall-clock time in the given zone, without tzinfo attached"""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)
