# license_server/core/clock.py
import datetime as dt
from typing import Optional


def utc_now() -> dt.datetime:
    """
    Get current UTC datetime with timezone information.
    """
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    """Treat naive datetimes coming back from the database as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=dt.timezone.utc)


def isoformat(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value else None
