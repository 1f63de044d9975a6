"""
Today's occurrence of an anchored daily schedule.

Day counting uses local calendar dates rather than elapsed duration: one
second across midnight is a whole day, and a 24 hour span that crosses a
daylight saving change is still exactly one day.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

from ..utils.time import days_between, local_date, localize, to_local


def days_since_anchor(
    anchor: datetime,
    now: datetime,
    tz: Optional[tzinfo] = None
) -> int:
    """
    Count local calendar days from the anchor's date to now's date.

    Args:
        anchor: Aware anchor instant
        now: Aware current instant
        tz: Zone defining the local calendar, process zone if None

    Returns:
        Signed day count, negative when the anchor's date is in the future
    """
    return days_between(local_date(now, tz), local_date(anchor, tz))


def todays_occurrence(
    anchor: datetime,
    interval: timedelta,
    now: datetime,
    tz: Optional[tzinfo] = None
) -> Optional[datetime]:
    """
    Compute today's occurrence of the recurring event.

    The occurrence sits on today's local date at the anchor's local
    time-of-day, pushed later by ``interval`` once per elapsed day. The
    offset is not wrapped back into today, so a large cumulative interval
    yields an instant on a later date.

    Args:
        anchor: Aware anchor instant
        interval: Per-day drift, expected non-negative
        now: Aware current instant
        tz: Zone defining the local calendar, process zone if None

    Returns:
        Occurrence as an aware UTC datetime, or None if the anchor's local
        date is after today's or the drifted time is past datetime.max
    """
    return occurrence_on_day(anchor, interval, days_since_anchor(anchor, now, tz), tz)


def occurrence_on_day(
    anchor: datetime,
    interval: timedelta,
    days: int,
    tz: Optional[tzinfo] = None
) -> Optional[datetime]:
    """
    Occurrence for a given local day count since the anchor.

    Returns:
        Occurrence as an aware UTC datetime, or None if ``days`` is negative
        or the result falls outside the representable datetime range
    """
    if days < 0:
        return None

    anchor_local = to_local(anchor, tz)
    # Offset applies to local wall time
    wall_time = datetime.combine(anchor_local.date(), anchor_local.time())
    try:
        wall_time += timedelta(days=days) + interval * days
        return localize(wall_time, tz).astimezone(timezone.utc)
    except OverflowError:
        return None
