"""Configuration validation utilities."""

from decimal import (
    ROUND_05UP,
    ROUND_CEILING,
    ROUND_DOWN,
    ROUND_FLOOR,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    ROUND_UP,
)
from typing import Any

from ..errors import FieldError

ROUNDING_MODES = {
    ROUND_05UP, ROUND_CEILING, ROUND_DOWN, ROUND_FLOOR,
    ROUND_HALF_DOWN, ROUND_HALF_EVEN, ROUND_HALF_UP, ROUND_UP,
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_trade_params(params: dict[str, Any]) -> list[FieldError]:
        """Validate trade constraint parameters."""
        errors = []

        for name in ("symbol_max_length", "broker_id_max_length", "max_integer_digits"):
            if name in params:
                value = params[name]
                if not _is_int(value) or value <= 0:
                    errors.append(FieldError(
                        field=name,
                        message="Must be a positive integer",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_store_params(params: dict[str, Any]) -> list[FieldError]:
        """Validate trade store parameters."""
        errors = []

        if "max_trades" in params:
            value = params["max_trades"]
            if value is not None and (not _is_int(value) or value <= 0):
                errors.append(FieldError(
                    field="max_trades",
                    message="Must be a positive integer or null",
                    value=value
                ))

        if "sum_precision" in params:
            value = params["sum_precision"]
            if not _is_int(value) or value < 1:
                errors.append(FieldError(
                    field="sum_precision",
                    message="Must be a positive integer",
                    value=value
                ))

        if "average_places" in params:
            value = params["average_places"]
            if not _is_int(value) or value < 0:
                errors.append(FieldError(
                    field="average_places",
                    message="Must be a non-negative integer",
                    value=value
                ))

        if "rounding" in params:
            value = params["rounding"]
            if value not in ROUNDING_MODES:
                errors.append(FieldError(
                    field="rounding",
                    message="Must be a decimal rounding mode name",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_fanout_params(params: dict[str, Any]) -> list[FieldError]:
        """Validate notification fanout parameters."""
        errors = []

        if "event_name" in params:
            value = params["event_name"]
            if not isinstance(value, str) or not value:
                errors.append(FieldError(
                    field="event_name",
                    message="Must be a non-empty string",
                    value=value
                ))

        if "max_pending" in params:
            value = params["max_pending"]
            if not _is_int(value) or value <= 0:
                errors.append(FieldError(
                    field="max_pending",
                    message="Must be a positive integer",
                    value=value
                ))

        if "send_timeout_seconds" in params:
            value = params["send_timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(FieldError(
                    field="send_timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if "retry_attempts" in params:
            value = params["retry_attempts"]
            if not _is_int(value) or value < 0:
                errors.append(FieldError(
                    field="retry_attempts",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[FieldError]:
        """Validate complete configuration."""
        errors = []

        if "trade" in config:
            errors.extend(ConfigValidator.validate_trade_params(config["trade"]))

        if "store" in config:
            errors.extend(ConfigValidator.validate_store_params(config["store"]))

        if "fanout" in config:
            errors.extend(ConfigValidator.validate_fanout_params(config["fanout"]))

        digits = (config.get("trade") or {}).get("max_integer_digits")
        precision = (config.get("store") or {}).get("sum_precision")
        if _is_int(digits) and _is_int(precision) and digits >= precision:
            errors.append(FieldError(
                field="max_integer_digits",
                message="Must be less than store sum_precision",
                value=digits
            ))

        return errors
