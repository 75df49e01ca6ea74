import datetime as dt
from typing import Callable
from zoneinfo import ZoneInfo

from loguru import logger

Clock = Callable[[], dt.datetime]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def resolve_timezone(name: str) -> dt.tzinfo:
    """Resolve a timezone name, falling back to UTC if invalid."""
    try:
        return ZoneInfo(name)
    except Exception:
        logger.warning("Invalid clinic timezone '{}'; defaulting to UTC", name)
        return dt.timezone.utc


def clinic_clock(timezone_name: str) -> Clock:
    """Return a clock producing aware timestamps in the clinic's timezone."""
    tz = resolve_timezone(timezone_name)
    return lambda: dt.datetime.now(tz)


def format_slot(date: dt.date, time: str) -> str:
    """Render a slot as ``2026-03-15 14:30`` for log lines."""
    return f"{date.isoformat()} {time}"
