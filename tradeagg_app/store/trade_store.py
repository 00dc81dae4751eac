"""
Thread-safe in-memory trade store with incrementally maintained aggregates.

Locking model:
- one lock per symbol serializes aggregate updates for that symbol only;
- a short append lock covers id assignment and the log append;
- the outbox hand-off runs after the new snapshot is installed and the
  symbol lock released, sequenced by id so outbox order is acceptance order;
- the registry lock is only held to look up or create a symbol slot.

Readers take no symbol lock. Each slot holds an immutable SymbolAggregate
that is replaced as one reference, so count and sum are always read as a
matching pair.
"""

import queue
import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from decimal import Context, DecimalException, Inexact, InvalidOperation, Overflow
from typing import Any, Optional

from ..config.defaults import DefaultConfig, get_default_config
from ..data.models import (
    PriceResult,
    StockPrice,
    SubmitResult,
    SymbolAggregate,
    Trade,
    TradeRequest,
)
from ..data.validators import TradeValidator
from ..errors import StorageError, ValidationError
from ..logging.config import get_store_logger, log_trade_accepted, log_trade_rejected
from ..utils.time import get_trade_time, utc_now

logger = get_store_logger(__name__)


class _SymbolSlot:
    """Lock and current aggregate snapshot for one symbol."""

    __slots__ = ("lock", "aggregate")

    def __init__(self, symbol: str):
        self.lock = threading.Lock()
        self.aggregate = SymbolAggregate(symbol=symbol)


class TradeStore:
    """Append-only trade log plus per-symbol running averages."""

    def __init__(
        self,
        config: Optional[DefaultConfig] = None,
        outbox: Optional[queue.Queue] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Args:
            config: Engine configuration, defaults when omitted
            outbox: Queue that receives every accepted trade in acceptance order
            clock: Source of acceptance time for trades without a timestamp
        """
        self.config = config or get_default_config()
        self.params = self.config.store
        self.validator = TradeValidator(self.config.trade)
        self.outbox = outbox
        self.clock = clock
        self.logger = logger

        # Sums must stay exact; any rounding is reported as a storage failure
        self._sum_context = Context(
            prec=self.params.sum_precision,
            traps=[Inexact, Overflow, InvalidOperation],
        )
        self._average_context = Context(
            prec=self.params.sum_precision + self.params.average_places,
            rounding=self.params.rounding,
        )

        self._slots: dict[str, _SymbolSlot] = {}
        self._registry_lock = threading.Lock()

        self._log: list[Trade] = []
        self._append_lock = threading.Lock()
        self._next_id = 1

        self._outbox_ready = threading.Condition()
        self._next_outbox_id = 1

        self._counter_lock = threading.Lock()
        self._rejected_count = 0
        self._failed_count = 0

    def _slot_for(self, symbol: str) -> _SymbolSlot:
        """Get or create the slot for ``symbol``."""
        slot = self._slots.get(symbol)
        if slot is not None:
            return slot

        with self._registry_lock:
            slot = self._slots.get(symbol)
            if slot is None:
                slot = _SymbolSlot(symbol)
                self._slots[symbol] = slot
            return slot

    def submit(self, request: TradeRequest) -> SubmitResult:
        """
        Validate, record and aggregate one trade.

        Returns:
            SubmitResult carrying the stored trade, a ValidationError, or a
            StorageError. No state changes unless the result is successful.
        """
        try:
            self.validator.validate(request)
        except ValidationError as error:
            with self._counter_lock:
                self._rejected_count += 1
            log_trade_rejected(
                self.logger,
                symbol=request.symbol if isinstance(request.symbol, str) else None,
                reason=error.message,
                fields=error.fields,
            )
            return SubmitResult.rejected(error)

        timestamp = get_trade_time(request.timestamp) if request.timestamp else self.clock()
        slot = self._slot_for(request.symbol)

        with slot.lock:
            try:
                updated = slot.aggregate.with_trade(request.price, self._sum_context)
                trade = self._append(request, timestamp)
            except StorageError as e:
                return self._storage_failure(e)
            except (DecimalException, MemoryError) as e:
                return self._storage_failure(StorageError(
                    f"Could not update aggregate for {request.symbol}: {type(e).__name__}",
                    operation="aggregate",
                    symbol=request.symbol,
                ))

            slot.aggregate = updated

        self._hand_off(trade)

        log_trade_accepted(
            self.logger,
            trade_id=trade.id,
            symbol=trade.symbol,
            broker_id=trade.broker_id,
            trade_count=updated.trade_count,
        )
        return SubmitResult.accepted(trade)

    def _append(self, request: TradeRequest, timestamp: datetime) -> Trade:
        """Assign the next id and append to the log."""
        with self._append_lock:
            max_trades = self.params.max_trades
            if max_trades is not None and len(self._log) >= max_trades:
                raise StorageError(
                    f"Trade log is full ({max_trades} trades)",
                    operation="append",
                    symbol=request.symbol,
                    context={"max_trades": max_trades},
                )

            trade = Trade.from_request(self._next_id, request, timestamp)
            self._log.append(trade)
            self._next_id += 1
            return trade

    def _hand_off(self, trade: Trade) -> None:
        """Put ``trade`` on the outbox once every lower id has been put there."""
        if self.outbox is None:
            return

        with self._outbox_ready:
            while self._next_outbox_id != trade.id:
                self._outbox_ready.wait()
            try:
                self.outbox.put_nowait(trade)
            finally:
                self._next_outbox_id += 1
                self._outbox_ready.notify_all()

    def last_trade_id(self) -> int:
        """Id of the most recently accepted trade, 0 before the first one."""
        with self._append_lock:
            return self._next_id - 1

    def _storage_failure(self, error: StorageError) -> SubmitResult:
        with self._counter_lock:
            self._failed_count += 1
        self.logger.error(
            "Trade storage failed",
            symbol=error.symbol,
            operation=error.operation,
            error=error.message,
        )
        return SubmitResult.failed(error)

    def get_aggregate(self, symbol: str) -> Optional[SymbolAggregate]:
        """Current aggregate snapshot, None if the symbol has no trades."""
        slot = self._slots.get(symbol)
        if slot is None or slot.aggregate.trade_count == 0:
            return None
        return slot.aggregate

    def _stock_price(self, aggregate: SymbolAggregate) -> StockPrice:
        return StockPrice(
            symbol=aggregate.symbol,
            average_price=aggregate.average_in(self._average_context, self.params.average_places),
        )

    def average_price(self, symbol: str) -> PriceResult:
        """Average trade price for one symbol, or a not-found result."""
        aggregate = self.get_aggregate(symbol)
        if aggregate is None:
            return PriceResult.not_found(symbol)
        return PriceResult.found(self._stock_price(aggregate))

    def _snapshot(self) -> list[SymbolAggregate]:
        with self._registry_lock:
            slots = list(self._slots.values())
        return [aggregate for aggregate in (slot.aggregate for slot in slots)
                if aggregate.trade_count > 0]

    def all_average_prices(self) -> list[StockPrice]:
        """Average price of every symbol with at least one trade, in no particular order."""
        return [self._stock_price(aggregate) for aggregate in self._snapshot()]

    def average_prices(self, symbols: Iterable[str]) -> list[StockPrice]:
        """
        Average prices for the requested symbols.

        Duplicates collapse to one entry and symbols without trades are
        left out.
        """
        prices = []
        for symbol in set(symbols):
            aggregate = self.get_aggregate(symbol)
            if aggregate is not None:
                prices.append(self._stock_price(aggregate))
        return prices

    def symbols(self) -> list[str]:
        """Symbols with at least one trade."""
        return [aggregate.symbol for aggregate in self._snapshot()]

    def trades(self, symbol: Optional[str] = None) -> list[Trade]:
        """Copy of the trade log in acceptance order, optionally for one symbol."""
        with self._append_lock:
            log = list(self._log)
        if symbol is None:
            return log
        return [trade for trade in log if trade.symbol == symbol]

    def trade_count(self) -> int:
        """Number of accepted trades."""
        with self._append_lock:
            return len(self._log)

    def get_stats(self) -> dict[str, Any]:
        """Store statistics."""
        with self._counter_lock:
            rejected, failed = self._rejected_count, self._failed_count
        return {
            "trade_count": self.trade_count(),
            "symbol_count": len(self._snapshot()),
            "rejected_count": rejected,
            "failed_count": failed,
            "max_trades": self.params.max_trades,
        }
