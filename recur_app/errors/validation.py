"""
Input validation failures.

Raised before any store access happens, so a rejected value never
changes the cached record or the stored bytes.
"""

from typing import Any, Optional, Dict


class AnchorValidationError(ValueError):
    """Base class for rejected anchor state values."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class InvalidIntervalError(AnchorValidationError):
    """Interval is negative or not a whole number of seconds."""

    def __init__(self, message: str, interval: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.interval = interval


class InvalidAnchorTimeError(AnchorValidationError):
    """Anchor time is not an absolute (timezone-aware) instant."""

    def __init__(self, message: str, value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.value = value
