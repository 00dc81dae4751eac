"""
Trade invariant validation.

Every check runs before the store touches any state; all failing fields are
reported together rather than stopping at the first one.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..config.defaults import TradeParams
from ..errors import FieldError, ValidationError
from .models import TradeRequest


class TradeValidator:
    """Validates trade requests against trade invariants."""

    def __init__(self, params: Optional[TradeParams] = None):
        self.params = params or TradeParams()

    def check(self, request: TradeRequest) -> list[FieldError]:
        """Return every field error for ``request``; empty when valid."""
        errors: list[FieldError] = []
        errors.extend(self._check_identifier("symbol", request.symbol, self.params.symbol_max_length))
        errors.extend(self._check_amount("price", request.price, self.params.max_integer_digits))
        errors.extend(self._check_amount("quantity", request.quantity, self.params.max_integer_digits))
        errors.extend(self._check_identifier("broker_id", request.broker_id, self.params.broker_id_max_length))

        if request.timestamp is not None and not isinstance(request.timestamp, datetime):
            errors.append(FieldError("timestamp", "Must be a datetime", request.timestamp))

        return errors

    def validate(self, request: TradeRequest) -> None:
        """
        Validate a trade request.

        Raises:
            ValidationError: If any field violates a trade invariant
        """
        errors = self.check(request)
        if errors:
            raise ValidationError(
                "Invalid trade: " + "; ".join(str(err) for err in errors),
                field_errors=errors,
                context={"symbol": request.symbol if isinstance(request.symbol, str) else None},
            )

    @staticmethod
    def _check_identifier(field: str, value: Any, max_length: int) -> list[FieldError]:
        if not isinstance(value, str):
            return [FieldError(field, "Must be a string", value)]
        if not value.strip():
            return [FieldError(field, "Is required", value)]
        if len(value) > max_length:
            return [FieldError(field, f"Must be at most {max_length} characters", value)]
        return []

    @staticmethod
    def _check_amount(field: str, value: Any, max_integer_digits: int) -> list[FieldError]:
        if not isinstance(value, Decimal):
            return [FieldError(field, "Must be a decimal", value)]
        if not value.is_finite():
            return [FieldError(field, "Must be a finite number", value)]
        if value < 0:
            return [FieldError(field, "Must be zero or a positive value", value)]
        if value and value.adjusted() >= max_integer_digits:
            return [FieldError(field, f"Must have at most {max_integer_digits} integer digits", value)]
        return []
