"""
Trade error classifications.

Validation and not-found outcomes are expected and recoverable. Storage and
delivery failures are system-level and flagged as unrecoverable for the
operation that hit them.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation failure."""
    field: str
    message: str
    value: Any = None

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class TradeError(Exception):
    """Base class for all trade engine errors."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.recoverable = True


class ValidationError(TradeError):
    """Trade input violates a trade invariant."""

    def __init__(self, message: str, field_errors: Optional[list[FieldError]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field_errors = list(field_errors or [])

    @property
    def fields(self) -> list[str]:
        """Names of the failing fields, in check order."""
        return [err.field for err in self.field_errors]

    def to_dict(self) -> dict[str, list[str]]:
        """Group messages by field, the shape returned to API callers."""
        grouped: dict[str, list[str]] = {}
        for err in self.field_errors:
            grouped.setdefault(err.field, []).append(err.message)
        return grouped


class NotFoundError(TradeError):
    """No trades have been recorded for the requested symbol."""

    def __init__(self, message: str, symbol: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.symbol = symbol


class StorageError(TradeError):
    """The in-memory store could not record a trade."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 symbol: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.symbol = symbol
        self.recoverable = False


class DeliveryError(TradeError):
    """A trade notification could not reach one subscriber."""

    def __init__(self, message: str, subscription_id: Optional[int] = None,
                 event_name: Optional[str] = None, trade_id: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.subscription_id = subscription_id
        self.event_name = event_name
        self.trade_id = trade_id
        self.recoverable = False
