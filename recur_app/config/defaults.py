"""Default configuration parameters for the anchor clock."""

from dataclasses import dataclass


@dataclass(frozen=True)
class StoreParams:
    """Byte store parameters."""
    key: str = "storage_message_proto"     # Fixed key holding the record
    db_path: str = "anchor_state.db"       # SQLite file for the durable store


@dataclass(frozen=True)
class ClockParams:
    """Poll loop parameters."""
    tick_seconds: float = 1.0              # Re-evaluation period
    timezone: str = "local"                # "local" or an IANA zone name


@dataclass(frozen=True)
class DisplayParams:
    """Rendering parameters."""
    time_format: str = "%H:%M:%S"
    unknown_text: str = "unknown"


@dataclass(frozen=True)
class LoggingParams:
    """Logging parameters."""
    level: str = "INFO"
    format_json: bool = False


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    store: StoreParams
    clock: ClockParams
    display: DisplayParams
    logging: LoggingParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        store=StoreParams(),
        clock=ClockParams(),
        display=DisplayParams(),
        logging=LoggingParams(),
    )
