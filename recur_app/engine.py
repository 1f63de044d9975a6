"""
Poll-and-render loop over the persisted anchor state.

Reads the cached anchor record on every tick, guards against a missing
anchor, asks the recurrence calculator for today's occurrence and renders
its local time-of-day, or an explicit unknown marker.
"""

import time
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from typing import Callable, Optional

import structlog

from .config.defaults import DisplayParams
from .persistence.anchor_store import PersistedAnchorState
from .recurrence.calculator import days_since_anchor, occurrence_on_day
from .utils.time import require_aware, to_local, utc_now

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class OccurrenceReading:
    """Result of one evaluation tick."""
    now: datetime
    anchor_time: Optional[datetime] = None
    interval: Optional[timedelta] = None
    days_since_anchor: Optional[int] = None
    occurrence: Optional[datetime] = None

    @property
    def is_known(self) -> bool:
        return self.occurrence is not None


class AnchorClock:
    """
    Periodic evaluator for today's occurrence.

    The clock never touches the byte store itself; it only reads the cached
    record held by PersistedAnchorState.
    """

    def __init__(
        self,
        anchor_state: PersistedAnchorState,
        tz: Optional[tzinfo] = None,
        clock: Callable[[], datetime] = utc_now,
        display: Optional[DisplayParams] = None,
        tick_seconds: float = 1.0
    ) -> None:
        self.anchor_state = anchor_state
        self.tz = tz
        self.clock = clock
        self.display = display or DisplayParams()
        self.tick_seconds = tick_seconds
        self.logger = logger

    def evaluate(self, now: Optional[datetime] = None) -> OccurrenceReading:
        """
        Compute today's occurrence from the cached anchor record.

        An unset anchor yields an unknown reading without calling the
        calculator. An unset interval counts as zero.
        """
        now = require_aware(now if now is not None else self.clock(), "now")
        anchor = self.anchor_state.get_anchor_time()
        interval = self.anchor_state.get_interval()

        if anchor is None:
            self.logger.debug("Anchor not set, occurrence unknown")
            return OccurrenceReading(now=now, interval=interval)

        effective_interval = interval if interval is not None else timedelta(0)
        days = days_since_anchor(anchor, now, self.tz)
        occurrence = occurrence_on_day(anchor, effective_interval, days, self.tz)

        self.logger.debug(
            "Occurrence evaluated",
            days_since_anchor=days,
            occurrence=occurrence.isoformat() if occurrence else None
        )

        return OccurrenceReading(
            now=now,
            anchor_time=anchor,
            interval=interval,
            days_since_anchor=days,
            occurrence=occurrence,
        )

    def render(self, reading: OccurrenceReading) -> str:
        """Local time-of-day of the occurrence, or the unknown marker."""
        if reading.occurrence is None:
            return self.display.unknown_text
        return to_local(reading.occurrence, self.tz).strftime(self.display.time_format)

    def tick(self) -> str:
        """Evaluate at the current instant and render."""
        return self.render(self.evaluate())

    def run(
        self,
        max_ticks: Optional[int] = None,
        sleep: Optional[Callable[[float], None]] = None,
        emit: Callable[[str], None] = print
    ) -> int:
        """
        Re-render once per tick period.

        Args:
            max_ticks: Stop after this many ticks; run until interrupted if None
            sleep: Sleep function, time.sleep if None
            emit: Output sink for each rendered line

        Returns:
            Number of ticks rendered
        """
        sleep = sleep or time.sleep
        ticks = 0
        self.logger.info("Clock started", tick_seconds=self.tick_seconds, max_ticks=max_ticks)

        try:
            while max_ticks is None or ticks < max_ticks:
                emit(self.tick())
                ticks += 1
                if max_ticks is None or ticks < max_ticks:
                    sleep(self.tick_seconds)
        except KeyboardInterrupt:
            self.logger.info("Clock interrupted", ticks=ticks)

        return ticks
