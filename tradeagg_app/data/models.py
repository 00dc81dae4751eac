"""
Canonical data models for trades and per-symbol aggregates.

All monetary values are ``decimal.Decimal``. Models are immutable; an
aggregate update produces a new snapshot rather than mutating the old one.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Context, Decimal
from typing import Any, Optional

from ..errors import NotFoundError, StorageError, TradeError, ValidationError
from ..utils.time import format_trade_time


@dataclass(frozen=True)
class TradeRequest:
    """Trade submitted for acceptance, before an id is assigned."""
    symbol: str
    price: Decimal
    quantity: Decimal
    broker_id: str
    timestamp: Optional[datetime] = None    # Defaults to acceptance time


@dataclass(frozen=True)
class Trade:
    """Accepted trade record."""
    id: int
    symbol: str
    price: Decimal
    quantity: Decimal
    broker_id: str
    timestamp: datetime

    @classmethod
    def from_request(cls, trade_id: int, request: TradeRequest, timestamp: datetime) -> "Trade":
        """Build the stored trade from an accepted request."""
        return cls(
            id=trade_id,
            symbol=request.symbol,
            price=request.price,
            quantity=request.quantity,
            broker_id=request.broker_id,
            timestamp=timestamp,
        )

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe representation pushed to subscribers and API callers."""
        return {
            "tradeId": self.id,
            "tickerSymbol": self.symbol,
            "price": str(self.price),
            "quantity": str(self.quantity),
            "brokerId": self.broker_id,
            "timestamp": format_trade_time(self.timestamp),
        }


@dataclass(frozen=True)
class SymbolAggregate:
    """Running trade count and price sum for one symbol."""
    symbol: str
    trade_count: int = 0
    price_sum: Decimal = Decimal(0)

    @property
    def average_price(self) -> Optional[Decimal]:
        """Unrounded mean price, None before the first trade."""
        if self.trade_count == 0:
            return None
        return self.price_sum / self.trade_count

    def average_in(self, context: Context, places: int) -> Optional[Decimal]:
        """Mean price computed in ``context`` and quantized to ``places``."""
        if self.trade_count == 0:
            return None
        average = context.divide(self.price_sum, Decimal(self.trade_count))
        return average.quantize(Decimal(1).scaleb(-places), context=context)

    def with_trade(self, price: Decimal, context: Context) -> "SymbolAggregate":
        """
        Return the snapshot that results from adding one trade.

        ``context`` should trap Inexact so a sum that cannot be held
        exactly raises instead of silently rounding.
        """
        return SymbolAggregate(
            symbol=self.symbol,
            trade_count=self.trade_count + 1,
            price_sum=context.add(self.price_sum, price),
        )


@dataclass(frozen=True)
class StockPrice:
    """Average trade price for one symbol."""
    symbol: str
    average_price: Decimal

    def to_payload(self) -> dict[str, Any]:
        return {
            "tickerSymbol": self.symbol,
            "averagePrice": str(self.average_price),
        }


@dataclass(frozen=True)
class SubmitResult:
    """Result of a trade submission."""

    trade: Optional[Trade] = None
    success: bool = True
    error: Optional[TradeError] = None

    @classmethod
    def accepted(cls, trade: Trade) -> "SubmitResult":
        """Create successful result with the stored trade."""
        return cls(trade=trade, success=True)

    @classmethod
    def rejected(cls, error: ValidationError) -> "SubmitResult":
        """Create result for a trade that failed validation."""
        return cls(success=False, error=error)

    @classmethod
    def failed(cls, error: StorageError) -> "SubmitResult":
        """Create result for a trade the store could not record."""
        return cls(success=False, error=error)

    @property
    def is_validation_error(self) -> bool:
        return isinstance(self.error, ValidationError)

    @property
    def is_storage_error(self) -> bool:
        return isinstance(self.error, StorageError)


@dataclass(frozen=True)
class PriceResult:
    """Result of a single-symbol average price query."""

    price: Optional[StockPrice] = None
    success: bool = True
    error: Optional[NotFoundError] = None

    @classmethod
    def found(cls, price: StockPrice) -> "PriceResult":
        return cls(price=price, success=True)

    @classmethod
    def not_found(cls, symbol: str) -> "PriceResult":
        return cls(
            success=False,
            error=NotFoundError(f"No trades recorded for {symbol}", symbol=symbol),
        )

    @property
    def average_price(self) -> Optional[Decimal]:
        return self.price.average_price if self.price else None
