"""
Command-line front end for the anchor clock.

Stands in for a date/time form: set the anchor from local wall
time, set the interval in seconds, show or watch today's occurrence, and
clear the store.
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path
from typing import Any, Optional

import structlog

from .config.defaults import DisplayParams
from .config.loader import ConfigLoader
from .config.validation import ConfigValidator
from .engine import AnchorClock
from .errors import (
    AnchorStoreError,
    AnchorValidationError,
    InvalidIntervalError,
    StoreIOError,
)
from .logging.config import configure_logging
from .persistence.anchor_store import PersistedAnchorState
from .persistence.byte_store import ByteStore, SqliteByteStore
from .utils.time import format_local_input, parse_local_input, resolve_timezone

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recur-clock",
        description="Track today's occurrence of an anchored daily schedule.",
    )
    parser.add_argument("--config-dir", type=Path, default=None,
                        help="Directory holding settings.yaml")
    parser.add_argument("--db-path", default=None,
                        help="SQLite file for the anchor store")
    parser.add_argument("--log-level", default=None,
                        help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    parser.add_argument("--json-logs", action="store_true",
                        help="Emit logs as JSON")

    subparsers = parser.add_subparsers(dest="command", required=True)

    set_anchor = subparsers.add_parser("set-anchor", help="Set the anchor instant")
    set_anchor.add_argument("local_time", help="Local wall time, YYYY-MM-DDTHH:MM:SS")

    set_interval = subparsers.add_parser("set-interval", help="Set the per-day interval")
    set_interval.add_argument("seconds", type=int, help="Whole seconds, non-negative")

    subparsers.add_parser("show", help="Print the stored state and today's occurrence")

    watch = subparsers.add_parser("watch", help="Re-render today's occurrence every tick")
    watch.add_argument("--ticks", type=int, default=None,
                       help="Stop after this many ticks")

    subparsers.add_parser("clear", help="Remove every key from the store")

    return parser


def _overrides_from_args(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.db_path:
        overrides.setdefault("store", {})["db_path"] = args.db_path
    if args.log_level:
        overrides.setdefault("logging", {})["level"] = args.log_level
    if args.json_logs:
        overrides.setdefault("logging", {})["format_json"] = True
    return overrides


def run_command(
    args: argparse.Namespace,
    config: dict[str, Any],
    store: ByteStore
) -> int:
    """Execute one parsed command against ``store``."""
    tz = resolve_timezone(config["clock"]["timezone"])
    anchor_state = PersistedAnchorState(store, key=config["store"]["key"])

    if args.command == "clear":
        store.clear()
        print("store cleared")
        return 0

    anchor_state.load()

    if args.command == "set-anchor":
        try:
            instant = parse_local_input(args.local_time, tz)
        except ValueError as e:
            raise AnchorValidationError(str(e)) from e
        anchor_state.set_anchor_time(instant)
        print(f"anchor set to {format_local_input(instant, tz)}")
        return 0

    if args.command == "set-interval":
        try:
            interval = timedelta(seconds=args.seconds)
        except OverflowError as e:
            raise InvalidIntervalError(
                f"Interval out of range: {args.seconds}s", interval=args.seconds
            ) from e
        anchor_state.set_interval(interval)
        print(f"interval set to {args.seconds}s")
        return 0

    clock = AnchorClock(
        anchor_state,
        tz=tz,
        display=DisplayParams(**config["display"]),
        tick_seconds=config["clock"]["tick_seconds"],
    )

    if args.command == "show":
        anchor = anchor_state.get_anchor_time()
        interval = anchor_state.get_interval()
        print(f"anchor:     {format_local_input(anchor, tz) if anchor else 'unset'}")
        print(f"interval:   {int(interval.total_seconds()) if interval is not None else 'unset'}")
        print(f"occurrence: {clock.tick()}")
        return 0

    # watch
    clock.run(max_ticks=args.ticks)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Console entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    loader = ConfigLoader.create(args.config_dir)
    config = loader.merge_config(_overrides_from_args(args))

    errors = ConfigValidator.validate_config(config)
    if errors:
        for error in errors:
            print(f"config error: {error.field}: {error.message} (value: {error.value!r})",
                  file=sys.stderr)
        return 1

    configure_logging(
        level=config["logging"]["level"],
        format_json=config["logging"]["format_json"],
    )

    try:
        store = SqliteByteStore(config["store"]["db_path"])
        return run_command(args, config, store)
    except (AnchorStoreError, AnchorValidationError, StoreIOError) as e:
        logger.error("Command failed", command=args.command, error=str(e))
        print(f"error: {e}", file=sys.stderr)
        return 1

