"""
Store failure classifications for the persisted anchor record.

Only a missing key is recoverable: PersistedAnchorState heals it by writing
an empty record. Everything else reaches the caller as a typed failure.
"""

from typing import Optional, Dict, Any


class AnchorStoreError(Exception):
    """Base class for failures reading or writing the anchor record."""

    def __init__(self, message: str, key: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.key = key
        self.context = context or {}
        self.recoverable = False


class KeyNotFoundError(AnchorStoreError):
    """The byte store holds no value for the requested key."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, **kwargs)
        self.recoverable = True


class CorruptStateError(AnchorStoreError):
    """A stored record is present but cannot be decoded."""

    def __init__(self, message: str, reason: Optional[str] = None,
                 raw_length: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reason = reason
        self.raw_length = raw_length


class StoreWriteFailedError(AnchorStoreError):
    """The byte store rejected a write."""


class StoreReadFailedError(AnchorStoreError):
    """The byte store failed for a reason other than a missing key."""


class StoreIOError(Exception):
    """Low-level I/O failure raised by ByteStore implementations."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.target = target
