"""Configuration validation utilities."""

import logging
from dataclasses import dataclass
from typing import Any
from zoneinfo import ZoneInfoNotFoundError

from ..utils.time import resolve_timezone


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_store_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate store parameters."""
        errors = []

        if "key" in params:
            value = params["key"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="store.key",
                    message="Must be a non-empty string",
                    value=value
                ))

        if "db_path" in params:
            value = params["db_path"]
            if not isinstance(value, str) or not value:
                errors.append(ValidationError(
                    field="store.db_path",
                    message="Must be a non-empty string",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_clock_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate poll loop parameters."""
        errors = []

        if "tick_seconds" in params:
            value = params["tick_seconds"]
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                errors.append(ValidationError(
                    field="clock.tick_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if "timezone" in params:
            value = params["timezone"]
            if not isinstance(value, str):
                errors.append(ValidationError(
                    field="clock.timezone",
                    message="Must be 'local' or an IANA zone name",
                    value=value
                ))
            else:
                try:
                    resolve_timezone(value)
                except (ZoneInfoNotFoundError, ValueError):
                    errors.append(ValidationError(
                        field="clock.timezone",
                        message="Unknown time zone",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_display_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate rendering parameters."""
        errors = []

        for name in ("time_format", "unknown_text"):
            if name in params:
                value = params[name]
                if not isinstance(value, str) or not value:
                    errors.append(ValidationError(
                        field=f"display.{name}",
                        message="Must be a non-empty string",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or not isinstance(
                    logging.getLevelName(value.upper()), int):
                errors.append(ValidationError(
                    field="logging.level",
                    message="Must be DEBUG, INFO, WARNING, ERROR or CRITICAL",
                    value=value
                ))

        if "format_json" in params:
            value = params["format_json"]
            if not isinstance(value, bool):
                errors.append(ValidationError(
                    field="logging.format_json",
                    message="Must be a boolean",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "store" in config:
            errors.extend(ConfigValidator.validate_store_params(config["store"]))

        if "clock" in config:
            errors.extend(ConfigValidator.validate_clock_params(config["clock"]))

        if "display" in config:
            errors.extend(ConfigValidator.validate_display_params(config["display"]))

        if "logging" in config:
            errors.extend(ConfigValidator.validate_logging_params(config["logging"]))

        return errors
