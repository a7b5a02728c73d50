"""Calendar-date helpers: parsing and the local "today"."""
from datetime import date, datetime, timezone

import pytz

from .constants import DATE_FMT


def as_date(value) -> date:
    """
    Coerce a date-like value to a naive calendar date.
    Supports date, datetime, 'YYYY-MM-DD' and ISO strings with a time part
    ('YYYY-MM-DDTHH:MM:SS'); the time part is dropped.
    Raises ValueError on anything else.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        base = value.strip().split("T", 1)[0].split(" ", 1)[0]
        return datetime.strptime(base, DATE_FMT).date()
    raise ValueError(f"Unsupported date: {value!r}")


def local_today(tz_name: str = "UTC") -> date:
    """Today's calendar date in the given timezone."""
    return datetime.now(pytz.timezone(tz_name)).date()


def today_factory(tz_name: str):
    """Return a zero-arg callable giving today's date in `tz_name`."""
    pytz.timezone(tz_name)  # fail fast on a bad zone name

    def _today() -> date:
        return local_today(tz_name)

    return _today


def now_iso() -> str:
    """UTC timestamp used for created_at columns."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


