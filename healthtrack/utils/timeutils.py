import re
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

# What a datetime-local input produces, minute precision, no zone.
CIVIL_DATETIME_FORMAT = "%Y-%m-%dT%H:%M"
CIVIL_DATETIME_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value, tz: ZoneInfo | None = None) -> datetime | None:
    """
    Parse a stored timestamp into an aware datetime.

    Accepts aware/naive datetimes and ISO-8601 strings (a trailing "Z" is fine).
    Naive values are read in `tz`, or UTC when no tz is given.
    Returns None for anything that can't be parsed.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        raw = value.strip()
        if not raw:
            return None
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz or timezone.utc)
    return dt


def to_iso_string(value: datetime) -> str:
    """UTC, millisecond precision, "Z" suffix: 2024-01-01T00:00:00.000Z"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_timestamp(value, tz: ZoneInfo | None = None):
    """Canonical ISO string for a parseable timestamp, else the raw value untouched.

    Naive values are read in `tz` (UTC when omitted), same as `parse_timestamp`.
    """
    dt = parse_timestamp(value, tz)
    if dt is None:
        return value
    return to_iso_string(dt)


def to_civil_datetime(value, tz: ZoneInfo) -> str:
    dt = parse_timestamp(value, tz)
    if dt is None:
        raise ValueError(f"Unparseable timestamp: {value!r}")
    return dt.astimezone(tz).strftime(CIVIL_DATETIME_FORMAT)


def from_civil_datetime(text: str, tz: ZoneInfo) -> datetime:
    """'YYYY-MM-DDTHH:mm' in tz -> aware datetime. Raises ValueError on bad input."""
    if not isinstance(text, str) or not CIVIL_DATETIME_RE.match(text):
        raise ValueError(f"Expected YYYY-MM-DDTHH:mm, got {text!r}")
    return datetime.strptime(text, CIVIL_DATETIME_FORMAT).replace(tzinfo=tz)


def start_of_month(value: datetime) -> datetime:
    return value.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def end_of_month(value: datetime) -> datetime:
    first = start_of_month(value)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return next_first - timedelta(milliseconds=1)
