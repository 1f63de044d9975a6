"""
Local-calendar time helpers shared by the calculator and the store.

Instants are aware datetimes. A ``tz`` of None always means the process's
local time zone, resolved independently for every instant so that daylight
saving transitions are honoured per date.
"""

from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

# Wall-clock format of an HTML datetime-local input with seconds
LOCAL_INPUT_FORMAT = "%Y-%m-%dT%H:%M:%S"


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def require_aware(value: datetime, name: str = "value") -> datetime:
    """
    Reject naive datetimes.

    Raises:
        ValueError: If ``value`` carries no UTC offset
    """
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        raise ValueError(f"{name} must be timezone-aware, got naive {value!r}")
    return value


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """
    Map a configured zone name to a tzinfo.

    ``None``, ``""`` and ``"local"`` all mean the process zone and return None.
    ``"UTC"`` needs no zone database.

    Raises:
        zoneinfo.ZoneInfoNotFoundError: If the IANA name is unknown
    """
    if not name or name.lower() == "local":
        return None
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def to_local(instant: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Convert an aware instant to local wall time in ``tz`` (process zone if None)."""
    require_aware(instant, "instant")
    return instant.astimezone(tz)


def local_date(instant: datetime, tz: Optional[tzinfo] = None) -> date:
    """Local calendar date of an instant."""
    return to_local(instant, tz).date()


def days_between(later: date, earlier: date) -> int:
    """Signed difference of date ordinals; time-of-day plays no part."""
    return later.toordinal() - earlier.toordinal()


def localize(wall_time: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Attach a zone to a naive local wall time.

    Non-existent or ambiguous wall times (DST gaps and folds) resolve with
    ``fold=0``, i.e. the earlier of two readings.

    Returns:
        Aware datetime in ``tz`` (or the process zone)
    """
    if wall_time.tzinfo is not None:
        raise ValueError(f"wall_time must be naive, got {wall_time!r}")
    if tz is None:
        return wall_time.astimezone()
    return wall_time.replace(tzinfo=tz)


def is_unambiguous_wall_time(wall_time: datetime, tz: Optional[tzinfo] = None) -> bool:
    """
    True when a naive wall time maps to exactly one instant in ``tz``.

    False inside a spring-forward gap (the time never happens) and inside a
    fall-back fold (the time happens twice).
    """
    earlier = localize(wall_time.replace(fold=0), tz)
    later = localize(wall_time.replace(fold=1), tz)
    if earlier.utcoffset() != later.utcoffset():
        return False
    round_trip = earlier.astimezone(timezone.utc).astimezone(earlier.tzinfo)
    return round_trip.replace(tzinfo=None) == wall_time.replace(fold=0)


def parse_local_input(text: str, tz: Optional[tzinfo] = None) -> datetime:
    """
    Parse ``YYYY-MM-DDTHH:MM:SS`` local wall time into a UTC instant.

    Raises:
        ValueError: If the text does not match the format, or the wall time
            does not exist or is ambiguous in the local zone
    """
    wall_time = datetime.strptime(text.strip(), LOCAL_INPUT_FORMAT)
    if not is_unambiguous_wall_time(wall_time, tz):
        raise ValueError(f"no single local time found for {text}")
    return localize(wall_time, tz).astimezone(timezone.utc)


def format_local_input(instant: datetime, tz: Optional[tzinfo] = None) -> str:
    """Format an instant as ``YYYY-MM-DDTHH:MM:SS`` local wall time."""
    return to_local(instant, tz).strftime(LOCAL_INPUT_FORMAT)


def format_rfc3339(instant: datetime) -> str:
    """
    Format an instant as RFC 3339 text, normalised to UTC.

    Microseconds are always written so the stored text has a fixed shape.
    """
    require_aware(instant, "instant")
    return instant.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_rfc3339(text: str) -> datetime:
    """
    Parse RFC 3339 text into an aware UTC datetime.

    Raises:
        ValueError: If the text is malformed or carries no offset
    """
    parsed = datetime.fromisoformat(text)
    require_aware(parsed, "timestamp")
    return parsed.astimezone(timezone.utc)


def whole_seconds(duration: timedelta) -> bool:
    """True if a duration has no sub-second component."""
    return duration.microseconds == 0
