"""
Recurrence calculation.

Derives today's occurrence of a daily event pinned to an anchor instant and
shifted by a fixed interval for every elapsed local calendar day.
"""

from .calculator import days_since_anchor, occurrence_on_day, todays_occurrence

__all__ = ["days_since_anchor", "occurrence_on_day", "todays_occurrence"]
