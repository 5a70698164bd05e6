from __future__ import annotations
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

WEEKDAYS = ("MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY")


def parse_time_of_day(value: time | str) -> time:
    """
    Accept a `time` or an "HH:MM" / "HH:MM:SS" string.

    Examples:
        >>> parse_time_of_day("09:30")
        datetime.time(9, 30)
    """
    if isinstance(value, time):
        return value
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day: {value!r}")
    hh, mm = int(parts[0]), int(parts[1])
    ss = int(parts[2]) if len(parts) == 3 else 0
    return time(hh, mm, ss)


def parse_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def weekday_indexes(tokens: list[str] | None) -> frozenset[int]:
    """Map weekday tokens ("MONDAY".."SUNDAY") to `date.weekday()` integers. Empty means no restriction."""
    out = set()
    for tok in tokens or ():
        name = tok.strip().upper()
        if name not in WEEKDAYS:
            raise ValueError(f"Unknown weekday token: {tok!r}")
        out.add(WEEKDAYS.index(name))
    return frozenset(out)


def to_local(now: datetime, tz_name: str) -> datetime:
    """
    Express `now` on the wall clock of `tz_name`.
    Naive datetimes are taken to already be local wall-clock time.
    """
    tz = ZoneInfo(tz_name)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def local_instant(d: date, t: time, tz_name: str) -> datetime:
    """Aware local datetime for wall-clock `t` on date `d` (first fold on ambiguous times)."""
    return datetime(d.year, d.month, d.day, t.hour, t.minute, t.second, t.microsecond, tzinfo=ZoneInfo(tz_name), fold=0)


def local_midnight(d: date, tz_name: str) -> datetime:
    return local_instant(d, time(0, 0), tz_name)


def next_day(d: date) -> date:
    return d + timedelta(days=1)
