"""Tests for the persisted anchor record."""

from datetime import datetime, timedelta, timezone

import orjson
import pytest

from recur_app.errors import (
    CorruptStateError,
    InvalidAnchorTimeError,
    InvalidIntervalError,
    StoreReadFailedError,
    StoreWriteFailedError,
)
from recur_app.persistence.anchor_store import (
    STORAGE_KEY,
    AnchorState,
    PersistedAnchorState,
    decode_anchor_state,
    encode_anchor_state,
)
from recur_app.persistence.byte_store import InMemoryByteStore, SqliteByteStore

ANCHOR = datetime(2022, 5, 2, 0, 0, 0, tzinfo=timezone.utc)


class TestEncoding:
    """Test the record encoding."""

    def test_empty_state_writes_only_version(self):
        """Unset fields are omitted."""
        record = orjson.loads(encode_anchor_state(AnchorState()))

        assert record == {"schema_version": 1}

    def test_fields_written(self):
        """Anchor is RFC 3339 with microseconds and offset; interval is seconds."""
        state = AnchorState(anchor_time=ANCHOR, interval=timedelta(seconds=90))

        record = orjson.loads(encode_anchor_state(state))

        assert record["start_time_rfc3339"] == "2022-05-02T00:00:00.000000+00:00"
        assert record["interval_seconds"] == 90

    def test_sub_second_precision_kept(self):
        """Microseconds survive encoding."""
        anchor = datetime(2022, 5, 2, 8, 30, 15, 123456, tzinfo=timezone.utc)

        decoded = decode_anchor_state(encode_anchor_state(AnchorState(anchor_time=anchor)))

        assert decoded.anchor_time == anchor
        assert decoded.anchor_time.microsecond == 123456

    def test_non_utc_offset_normalised(self):
        """Anchors in other offsets are stored as the same instant in UTC."""
        anchor = datetime(2022, 5, 2, 2, 0, 0, tzinfo=timezone(timedelta(hours=2)))

        record = orjson.loads(encode_anchor_state(AnchorState(anchor_time=anchor)))

        assert record["start_time_rfc3339"] == "2022-05-02T00:00:00.000000+00:00"

    def test_unknown_fields_ignored(self):
        """Records from newer builds decode the fields this build knows."""
        raw = orjson.dumps({
            "schema_version": 7,
            "interval_seconds": 90,
            "start_time_rfc3339": "2022-05-02T00:00:00+00:00",
            "theme": "dark",
            "extra": {"nested": [1, 2, 3]},
        })

        state = decode_anchor_state(raw)

        assert state == AnchorState(anchor_time=ANCHOR, interval=timedelta(seconds=90))

    def test_single_field_records(self):
        """Either field may be missing."""
        assert decode_anchor_state(b'{"interval_seconds": 0}') == AnchorState(
            interval=timedelta(0)
        )
        assert decode_anchor_state(
            b'{"start_time_rfc3339": "2022-05-02T00:00:00Z"}'
        ) == AnchorState(anchor_time=ANCHOR)

    def test_record_without_version_accepted(self):
        """An object with no known keys is an empty state."""
        assert decode_anchor_state(b"{}") == AnchorState()

    @pytest.mark.parametrize("raw,reason", [
        (b"", "empty"),
        (b"not json", "invalid_json"),
        (b"\x08\x01\x12\x04", "invalid_json"),
        (b"[1, 2]", "not_an_object"),
        (b'"text"', "not_an_object"),
        (b'{"interval_seconds": "90"}', "bad_interval"),
        (b'{"interval_seconds": true}', "bad_interval"),
        (b'{"interval_seconds": 1.5}', "bad_interval"),
        (b'{"interval_seconds": -5}', "bad_interval"),
        (b'{"interval_seconds": 9223372036854775807}', "bad_interval"),
        (b'{"start_time_rfc3339": 1651449600}', "bad_start_time"),
        (b'{"start_time_rfc3339": "yesterday"}', "bad_start_time"),
        (b'{"start_time_rfc3339": "2022-05-02T00:00:00"}', "bad_start_time"),
    ])
    def test_structurally_invalid_records(self, raw, reason):
        """Invalid blobs raise CorruptStateError, never a bare exception."""
        with pytest.raises(CorruptStateError) as exc_info:
            decode_anchor_state(raw)

        assert exc_info.value.reason == reason
        assert exc_info.value.raw_length == len(raw)


class TestLoad:
    """Test PersistedAnchorState.load."""

    def test_missing_key_self_heals(self, memory_store):
        """First load writes an empty record and returns it."""
        persisted = PersistedAnchorState(memory_store)

        state = persisted.load()

        assert state == AnchorState()
        assert state.is_empty
        assert STORAGE_KEY in memory_store
        assert memory_store.write_count == 1
        assert decode_anchor_state(memory_store.get(STORAGE_KEY)) == AnchorState()

    def test_existing_record_loaded(self, memory_store):
        """A stored record is decoded into the cache."""
        memory_store.set(STORAGE_KEY, b'{"schema_version":1,"interval_seconds":120}')
        persisted = PersistedAnchorState(memory_store)

        state = persisted.load()

        assert state.interval == timedelta(seconds=120)
        assert persisted.get_interval() == timedelta(seconds=120)
        assert persisted.get_anchor_time() is None
        # Reading an existing record performs no write
        assert memory_store.write_count == 1

    def test_corrupt_record_not_overwritten(self, memory_store):
        """Undecodable bytes are reported and left in place."""
        memory_store.set(STORAGE_KEY, b"\x00garbage")
        persisted = PersistedAnchorState(memory_store)

        with pytest.raises(CorruptStateError) as exc_info:
            persisted.load()

        assert exc_info.value.key == STORAGE_KEY
        assert memory_store.get(STORAGE_KEY) == b"\x00garbage"
        assert memory_store.write_count == 1
        assert persisted.state == AnchorState()

    def test_zero_length_record_is_corrupt(self, memory_store):
        """An empty blob is not mistaken for a missing key."""
        memory_store.set(STORAGE_KEY, b"")
        persisted = PersistedAnchorState(memory_store)

        with pytest.raises(CorruptStateError):
            persisted.load()

        assert memory_store.get(STORAGE_KEY) == b""

    def test_read_failure_surfaced(self, memory_store):
        """I/O failures other than a missing key are typed read failures."""
        memory_store.fail_reads = True
        persisted = PersistedAnchorState(memory_store)

        with pytest.raises(StoreReadFailedError) as exc_info:
            persisted.load()

        assert exc_info.value.key == STORAGE_KEY
        assert memory_store.write_count == 0

    def test_self_heal_write_failure_surfaced(self, memory_store):
        """A failed self-healing write is not swallowed."""
        memory_store.fail_writes = True
        persisted = PersistedAnchorState(memory_store)

        with pytest.raises(StoreWriteFailedError):
            persisted.load()

    def test_custom_key(self, memory_store):
        """The record lives under the configured key only."""
        persisted = PersistedAnchorState(memory_store, key="other_key")

        persisted.load()

        assert "other_key" in memory_store
        assert STORAGE_KEY not in memory_store

    def test_load_after_clear_recreates_default(self, anchor_state, memory_store):
        """Clearing the store resets to the empty record on next load."""
        anchor_state.set_interval(timedelta(seconds=30))
        memory_store.clear()

        state = anchor_state.load()

        assert state == AnchorState()
        assert STORAGE_KEY in memory_store


class TestMutations:
    """Test setters and accessors."""

    def test_unset_anchor_reads_as_none(self, anchor_state):
        """Scenario D: an anchor never written is unset."""
        assert anchor_state.get_anchor_time() is None
        assert anchor_state.get_interval() is None

    def test_set_anchor_time_persists(self, anchor_state, memory_store):
        """Each mutation rewrites the stored record immediately."""
        anchor_state.set_anchor_time(ANCHOR)

        assert anchor_state.get_anchor_time() == ANCHOR
        assert decode_anchor_state(memory_store.get(STORAGE_KEY)).anchor_time == ANCHOR
        assert memory_store.write_count == 2

    def test_set_anchor_time_normalises_to_utc(self, anchor_state):
        """The cached anchor is the stored UTC instant."""
        plus_five = timezone(timedelta(hours=5))
        anchor_state.set_anchor_time(datetime(2022, 5, 2, 5, 0, 0, tzinfo=plus_five))

        assert anchor_state.get_anchor_time() == ANCHOR
        assert anchor_state.get_anchor_time().utcoffset() == timedelta(0)

    def test_set_interval_keeps_anchor(self, anchor_state, memory_store):
        """Setting one field rewrites the whole record."""
        anchor_state.set_anchor_time(ANCHOR)
        anchor_state.set_interval(timedelta(seconds=90))

        stored = decode_anchor_state(memory_store.get(STORAGE_KEY))
        assert stored == AnchorState(anchor_time=ANCHOR, interval=timedelta(seconds=90))

    def test_zero_interval_allowed(self, anchor_state):
        """Zero is a valid interval."""
        anchor_state.set_interval(timedelta(0))

        assert anchor_state.get_interval() == timedelta(0)

    @pytest.mark.parametrize("bad", [
        timedelta(seconds=-1),
        timedelta(days=-3),
        timedelta(seconds=1, milliseconds=500),
        90,
        "90",
    ])
    def test_invalid_interval_rejected_before_write(self, anchor_state, memory_store, bad):
        """Rejected intervals never reach the store or the cache."""
        writes_before = memory_store.write_count

        with pytest.raises(InvalidIntervalError) as exc_info:
            anchor_state.set_interval(bad)

        assert exc_info.value.interval == bad
        assert memory_store.write_count == writes_before
        assert anchor_state.get_interval() is None

    def test_invalid_interval_is_value_error(self, anchor_state):
        """Validation failures are ValueErrors."""
        with pytest.raises(ValueError):
            anchor_state.set_interval(timedelta(seconds=-10))

    @pytest.mark.parametrize("bad", [datetime(2022, 5, 2), "2022-05-02T00:00:00Z", None])
    def test_invalid_anchor_rejected(self, anchor_state, memory_store, bad):
        """Naive or non-datetime anchors are rejected without writing."""
        with pytest.raises(InvalidAnchorTimeError):
            anchor_state.set_anchor_time(bad)

        assert memory_store.write_count == 1
        assert anchor_state.get_anchor_time() is None

    def test_write_failure_keeps_cached_value(self, anchor_state, memory_store):
        """After a failed write the cache holds the new value for a retry."""
        memory_store.fail_writes = True

        with pytest.raises(StoreWriteFailedError) as exc_info:
            anchor_state.set_interval(timedelta(seconds=45))

        assert exc_info.value.key == STORAGE_KEY
        assert anchor_state.get_interval() == timedelta(seconds=45)
        assert decode_anchor_state(memory_store.get(STORAGE_KEY)).interval is None

        memory_store.fail_writes = False
        anchor_state.save()

        assert decode_anchor_state(memory_store.get(STORAGE_KEY)).interval == timedelta(seconds=45)


class TestRoundTrip:
    """Test load(save(state)) == state."""

    @pytest.mark.parametrize("state", [
        AnchorState(),
        AnchorState(anchor_time=ANCHOR),
        AnchorState(interval=timedelta(seconds=90)),
        AnchorState(anchor_time=ANCHOR, interval=timedelta(0)),
        AnchorState(
            anchor_time=datetime(1999, 12, 31, 23, 59, 59, 999999, tzinfo=timezone.utc),
            interval=timedelta(days=2, seconds=1),
        ),
    ])
    def test_round_trip(self, memory_store, state):
        """A fresh instance loads exactly what another saved."""
        PersistedAnchorState(memory_store).save(state)

        assert PersistedAnchorState(memory_store).load() == state

    def test_survives_process_restart(self, tmp_path):
        """State written through SQLite is visible to a new store instance."""
        db_path = str(tmp_path / "anchor.db")
        first = PersistedAnchorState(SqliteByteStore(db_path))
        first.load()
        first.set_anchor_time(ANCHOR)
        first.set_interval(timedelta(seconds=90))

        second = PersistedAnchorState(SqliteByteStore(db_path))
        state = second.load()

        assert state == AnchorState(anchor_time=ANCHOR, interval=timedelta(seconds=90))

    def test_record_from_newer_build_survives_update(self):
        """Known fields update; unknown fields from other builds are dropped on rewrite."""
        store = InMemoryByteStore({
            STORAGE_KEY: b'{"schema_version":2,"interval_seconds":10,"alarm_sound":"bell"}'
        })
        persisted = PersistedAnchorState(store)
        persisted.load()

        persisted.set_anchor_time(ANCHOR)

        assert decode_anchor_state(store.get(STORAGE_KEY)) == AnchorState(
            anchor_time=ANCHOR, interval=timedelta(seconds=10)
        )
