"""
Recur App - Recurring Anchor Clock

Records a one-time anchor instant and a per-day interval, then derives
today's occurrence of the recurring event under local-calendar day
boundaries. The anchor state is persisted through an opaque byte store
so it survives process restarts.
"""

__version__ = "0.1.0"
__author__ = "Recur Team"
