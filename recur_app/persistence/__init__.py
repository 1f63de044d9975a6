"""
Persistence for the anchor record.

PersistedAnchorState owns the encoded record; ByteStore implementations
are the opaque key/blob services it writes through.
"""

from .anchor_store import (
    STORAGE_KEY,
    AnchorState,
    PersistedAnchorState,
    decode_anchor_state,
    encode_anchor_state,
)
from .byte_store import ByteStore, InMemoryByteStore, SqliteByteStore

__all__ = [
    "STORAGE_KEY",
    "AnchorState",
    "PersistedAnchorState",
    "decode_anchor_state",
    "encode_anchor_state",
    "ByteStore",
    "InMemoryByteStore",
    "SqliteByteStore",
]
