from datetime import datetime, timedelta, timezone
from typing import Union

# Smallest duration a datetime epoch can hold [s]
EPOCH_RESOLUTION_S = 1e-6

# Cumulative days before each month in a common year
_DAYS_BEFORE_MONTH = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)


def is_leap_year(year: int) -> bool:
    """Gregorian leap year rule."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def to_utc(epoch: datetime) -> datetime:
    """Return a timezone-aware UTC datetime, naive values are taken as UTC."""
    if epoch.tzinfo is None:
        return epoch.replace(tzinfo=timezone.utc)
    return epoch.astimezone(timezone.utc)


def parse_epoch(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO-8601 epoch.

    Accepts a trailing 'Z' for UTC. Values without an offset are UTC.
    """
    if isinstance(value, datetime):
        return to_utc(value)
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))


def decimal_year(epoch: datetime) -> float:
    """
    Express a UTC calendar date as a fractional year.

    Only the date part is used: the fraction is the zero-based day of year
    over the number of days in that year.

    Args:
        epoch: Epoch to convert

    Returns:
        Decimal year, e.g. 2013-12-09 -> 2013.937
    """
    utc = to_utc(epoch)
    year, month, day = utc.year, utc.month, utc.day
    leap = 1 if is_leap_year(year) else 0
    day_in_year = _DAYS_BEFORE_MONTH[month - 1] + (day - 1) + (leap if month > 2 else 0)
    return year + day_in_year / (365 + leap)


def shifted(epoch: datetime, seconds: float) -> datetime:
    """Shift an epoch by a duration in seconds."""
    return epoch + timedelta(seconds=seconds)


def seconds_between(start: datetime, end: datetime) -> float:
    """Signed duration from start to end in seconds."""
    return (end - start).total_seconds()
