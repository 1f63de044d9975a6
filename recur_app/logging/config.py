"""
Centralized logging configuration for the anchor clock.

Every component logs through structlog configured here, so store mutations,
self-healing and tick evaluations share one structured format.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    # Logs go to stderr; stdout carries the rendered occurrence
    logging.basicConfig(
        level=log_level,
        stream=sys.stderr,
        format="%(message)s",
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_store_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound with anchor store context.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for anchor store operations
    """
    logger = get_logger(name)

    return logger.bind(subsystem="anchor_store")


def log_state_mutation(
    logger: FilteringBoundLogger,
    field: str,
    old_value: Any,
    new_value: Any,
    key: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a change to one field of the persisted anchor record.

    Args:
        logger: Structlog logger instance
        field: Name of the record field that changed
        old_value: Value before the change (None when unset)
        new_value: Value after the change
        key: Byte store key the record lives under
        context: Additional context data
    """
    bound_logger = logger.bind(
        field=field,
        old_value=_loggable(old_value),
        new_value=_loggable(new_value),
        store_key=key,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Anchor state updated")


def _loggable(value: Any) -> Any:
    """Render datetimes and durations as plain strings for the renderers."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "total_seconds"):
        return int(value.total_seconds())
    return str(value)
