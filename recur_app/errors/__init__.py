"""
Error classification for the anchor clock.

Store failures are split from input validation failures so callers can tell
a broken or unavailable byte store apart from a bad value typed by the user.
"""

from .store_failures import (
    AnchorStoreError,
    KeyNotFoundError,
    CorruptStateError,
    StoreWriteFailedError,
    StoreReadFailedError,
    StoreIOError,
)
from .validation import (
    AnchorValidationError,
    InvalidIntervalError,
    InvalidAnchorTimeError,
)

__all__ = [
    # Store Failures
    "AnchorStoreError",
    "KeyNotFoundError",
    "CorruptStateError",
    "StoreWriteFailedError",
    "StoreReadFailedError",
    "StoreIOError",
    # Validation
    "AnchorValidationError",
    "InvalidIntervalError",
    "InvalidAnchorTimeError",
]
