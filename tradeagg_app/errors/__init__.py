"""
Error classification for the trade aggregation engine.

Store-facing errors are carried inside result values at the API boundary;
delivery errors never leave the notification fanout.
"""

from .trade_errors import (
    DeliveryError,
    FieldError,
    NotFoundError,
    StorageError,
    TradeError,
    ValidationError,
)

__all__ = [
    "TradeError",
    "FieldError",
    "ValidationError",
    "NotFoundError",
    "StorageError",
    "DeliveryError",
]
