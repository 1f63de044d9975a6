"""
Persisted anchor state: one versioned record under a fixed byte store key.

The record is an orjson-encoded map of optional fields. Readers take the
fields they know and ignore the rest, so records written by older or newer
builds stay loadable for the fields both understand.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Any, Optional

import orjson

from ..errors import (
    CorruptStateError,
    InvalidAnchorTimeError,
    InvalidIntervalError,
    KeyNotFoundError,
    StoreIOError,
    StoreReadFailedError,
    StoreWriteFailedError,
)
from ..logging.config import get_store_logger, log_state_mutation
from ..utils.time import format_rfc3339, parse_rfc3339, whole_seconds
from .byte_store import ByteStore

STORAGE_KEY = "storage_message_proto"
SCHEMA_VERSION = 1

# Record field names
FIELD_SCHEMA_VERSION = "schema_version"
FIELD_START_TIME = "start_time_rfc3339"
FIELD_INTERVAL = "interval_seconds"

INT64_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class AnchorState:
    """Anchor instant and per-day interval; either may be unset."""
    anchor_time: Optional[datetime] = None
    interval: Optional[timedelta] = None

    @property
    def is_empty(self) -> bool:
        return self.anchor_time is None and self.interval is None


def encode_anchor_state(state: AnchorState) -> bytes:
    """
    Serialize an AnchorState to bytes.

    Unset fields are omitted rather than written as null.
    """
    record: dict[str, Any] = {FIELD_SCHEMA_VERSION: SCHEMA_VERSION}

    if state.anchor_time is not None:
        record[FIELD_START_TIME] = format_rfc3339(state.anchor_time)
    if state.interval is not None:
        record[FIELD_INTERVAL] = int(state.interval.total_seconds())

    return orjson.dumps(record)


def decode_anchor_state(raw: bytes) -> AnchorState:
    """
    Deserialize bytes written by encode_anchor_state.

    Any subset of the known fields is accepted; unknown fields are ignored.

    Raises:
        CorruptStateError: If the bytes are empty, not a JSON object, or a
            known field has the wrong type or an out-of-range value
    """
    if not raw:
        raise CorruptStateError("Stored record is empty", reason="empty", raw_length=0)

    try:
        record = orjson.loads(raw)
    except orjson.JSONDecodeError as e:
        raise CorruptStateError(
            f"Stored record is not valid JSON: {e}",
            reason="invalid_json",
            raw_length=len(raw)
        ) from e

    if not isinstance(record, dict):
        raise CorruptStateError(
            f"Stored record must be an object, got {type(record).__name__}",
            reason="not_an_object",
            raw_length=len(raw)
        )

    return AnchorState(
        anchor_time=_decode_start_time(record.get(FIELD_START_TIME), len(raw)),
        interval=_decode_interval(record.get(FIELD_INTERVAL), len(raw)),
    )


def _decode_start_time(value: Any, raw_length: int) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise CorruptStateError(
            f"{FIELD_START_TIME} must be a string",
            reason="bad_start_time",
            raw_length=raw_length
        )
    try:
        return parse_rfc3339(value)
    except ValueError as e:
        raise CorruptStateError(
            f"{FIELD_START_TIME} is not an RFC 3339 timestamp: {value!r}",
            reason="bad_start_time",
            raw_length=raw_length
        ) from e


def _decode_interval(value: Any, raw_length: int) -> Optional[timedelta]:
    if value is None:
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        raise CorruptStateError(
            f"{FIELD_INTERVAL} must be an integer",
            reason="bad_interval",
            raw_length=raw_length
        )
    if value < 0 or value > INT64_MAX:
        raise CorruptStateError(
            f"{FIELD_INTERVAL} out of range: {value}",
            reason="bad_interval",
            raw_length=raw_length
        )
    try:
        return timedelta(seconds=value)
    except OverflowError as e:
        raise CorruptStateError(
            f"{FIELD_INTERVAL} out of range: {value}",
            reason="bad_interval",
            raw_length=raw_length
        ) from e


class PersistedAnchorState:
    """
    Durable AnchorState behind an injected ByteStore.

    Holds the cached record in memory. Every mutation rewrites the whole
    record immediately. Not safe for concurrent use: a field update followed
    by a full rewrite is not atomic.
    """

    def __init__(self, store: ByteStore, key: str = STORAGE_KEY):
        self.store = store
        self.key = key
        self.logger = get_store_logger(__name__).bind(store_key=key)
        self._state = AnchorState()

    @property
    def state(self) -> AnchorState:
        return self._state

    def load(self) -> AnchorState:
        """
        Read the record from the store into memory.

        A missing key is healed by persisting an empty record. A present but
        undecodable record is left untouched in the store.

        Returns:
            The loaded (or freshly created) AnchorState

        Raises:
            CorruptStateError: Stored bytes cannot be decoded
            StoreReadFailedError: The store failed for another reason
            StoreWriteFailedError: The self-healing write failed
        """
        try:
            raw = self.store.get(self.key)
        except KeyNotFoundError:
            self.logger.info("No stored anchor record, creating empty record")
            self._state = AnchorState()
            self.save()
            return self._state
        except StoreIOError as e:
            self.logger.error("Failed to read anchor record", error=str(e))
            raise StoreReadFailedError(
                f"Failed to read anchor record: {e}", key=self.key
            ) from e

        try:
            state = decode_anchor_state(raw)
        except CorruptStateError as e:
            e.key = self.key
            self.logger.error(
                "Stored anchor record is corrupt",
                reason=e.reason,
                raw_length=e.raw_length
            )
            raise

        self._state = state
        self.logger.debug(
            "Anchor record loaded",
            anchor_set=state.anchor_time is not None,
            interval_set=state.interval is not None
        )
        return state

    def save(self, state: Optional[AnchorState] = None) -> None:
        """
        Write the whole record to the store.

        Args:
            state: Replacement record; the cached record is written if None

        Raises:
            StoreWriteFailedError: The store rejected the write
        """
        if state is not None:
            self._state = state

        data = encode_anchor_state(self._state)
        try:
            self.store.set(self.key, data)
        except StoreIOError as e:
            self.logger.error("Failed to save anchor record", error=str(e))
            raise StoreWriteFailedError(
                f"Failed to save anchor record: {e}", key=self.key
            ) from e

    def set_anchor_time(self, instant: datetime) -> None:
        """
        Set the anchor instant and persist.

        Raises:
            InvalidAnchorTimeError: ``instant`` is not timezone-aware
            StoreWriteFailedError: The write failed; the cached record keeps
                the new value so ``save()`` can retry
        """
        if not isinstance(instant, datetime) or instant.utcoffset() is None:
            raise InvalidAnchorTimeError(
                f"Anchor time must be a timezone-aware datetime, got {instant!r}",
                value=instant
            )

        old_value = self._state.anchor_time
        # Normalised through the same text form the record stores
        new_value = parse_rfc3339(format_rfc3339(instant))
        self._state = replace(self._state, anchor_time=new_value)
        log_state_mutation(self.logger, "anchor_time", old_value, new_value, self.key)
        self.save()

    def set_interval(self, duration: timedelta) -> None:
        """
        Set the per-day interval and persist.

        Raises:
            InvalidIntervalError: ``duration`` is negative or has a
                sub-second part; nothing is written
            StoreWriteFailedError: The write failed; the cached record keeps
                the new value so ``save()`` can retry
        """
        if not isinstance(duration, timedelta):
            raise InvalidIntervalError(
                f"Interval must be a timedelta, got {type(duration).__name__}",
                interval=duration
            )
        if duration < timedelta(0):
            raise InvalidIntervalError(
                f"Interval must not be negative, got {duration}",
                interval=duration
            )
        if not whole_seconds(duration):
            raise InvalidIntervalError(
                f"Interval must be a whole number of seconds, got {duration}",
                interval=duration
            )

        old_value = self._state.interval
        self._state = replace(self._state, interval=duration)
        log_state_mutation(self.logger, "interval", old_value, duration, self.key)
        self.save()

    def get_anchor_time(self) -> Optional[datetime]:
        return self._state.anchor_time

    def get_interval(self) -> Optional[timedelta]:
        return self._state.interval
