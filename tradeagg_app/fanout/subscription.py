"""Per-subscriber delivery worker."""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Optional

from ..config.defaults import FanoutParams
from ..data.models import Trade
from ..delivery.base import BaseTradeSink
from ..errors import DeliveryError
from ..logging.config import get_fanout_logger

logger = get_fanout_logger(__name__)


@dataclass(frozen=True)
class SubscriptionHandle:
    """Opaque handle returned by subscribe, used to unsubscribe."""
    id: int
    sink_name: str


class Subscription:
    """
    One subscriber: a bounded pending queue drained by a daemon thread.

    Events are delivered in the order they were enqueued. When the queue is
    full the oldest pending event is dropped so the subscriber keeps up with
    the latest trades.
    """

    def __init__(
        self,
        handle: SubscriptionHandle,
        sink: BaseTradeSink,
        params: FanoutParams,
        symbols: Optional[frozenset[str]] = None,
        after_trade_id: int = 0,
    ):
        self.handle = handle
        self.sink = sink
        self.params = params
        self.symbols = symbols
        # Trades accepted before registration are never delivered
        self.after_trade_id = after_trade_id
        self.logger = logger.bind(subscription_id=handle.id, sink_name=handle.sink_name)

        self._pending: deque[tuple[str, Trade]] = deque()
        self._cond = threading.Condition()
        self._busy = False
        self._closed = False

        self.delivered_count = 0
        self.failed_count = 0
        self.dropped_count = 0
        self.last_error: Optional[DeliveryError] = None

        self._thread = threading.Thread(
            target=self._run,
            name=f"tradeagg-subscriber-{handle.id}",
            daemon=True,
        )
        self._thread.start()

    @property
    def id(self) -> int:
        return self.handle.id

    @property
    def closed(self) -> bool:
        return self._closed

    def wants(self, trade: Trade) -> bool:
        """Whether this subscriber receives ``trade``."""
        if trade.id <= self.after_trade_id:
            return False
        return self.symbols is None or trade.symbol in self.symbols

    def enqueue(self, event_name: str, trade: Trade) -> bool:
        """
        Queue a trade for delivery without blocking on the sink.

        Returns:
            False if the subscription is closed
        """
        with self._cond:
            if self._closed:
                return False

            if len(self._pending) >= self.params.max_pending:
                _, dropped = self._pending.popleft()
                self.dropped_count += 1
                self._record_failure(DeliveryError(
                    "Subscriber queue full, dropped oldest pending trade",
                    subscription_id=self.id,
                    event_name=event_name,
                    trade_id=dropped.id,
                ))

            self._pending.append((event_name, trade))
            self._cond.notify_all()
            return True

    def _run(self) -> None:
        while True:
            with self._cond:
                while not self._pending and not self._closed:
                    self._cond.wait()
                if self._closed:
                    self._pending.clear()
                    self._cond.notify_all()
                    return
                event_name, trade = self._pending.popleft()
                self._busy = True

            try:
                self._deliver(event_name, trade)
            finally:
                with self._cond:
                    self._busy = False
                    self._cond.notify_all()

    def _deliver(self, event_name: str, trade: Trade) -> None:
        payload = trade.to_payload()
        try:
            result = self.sink.broadcast_with_retry(
                event_name,
                payload,
                max_retries=self.params.retry_attempts,
                retry_delay=self.params.retry_delay_seconds,
            )
        except Exception as e:
            # the worker must outlive any sink failure
            self.logger.exception("Sink raised during broadcast", trade_id=trade.id)
            self.failed_count += 1
            self.last_error = DeliveryError(
                f"Sink {self.handle.sink_name} raised: {e}",
                subscription_id=self.id,
                event_name=event_name,
                trade_id=trade.id,
            )
            return

        if result.ok:
            self.delivered_count += 1
            return

        self.failed_count += 1
        self._record_failure(DeliveryError(
            result.message or "Delivery failed",
            subscription_id=self.id,
            event_name=event_name,
            trade_id=trade.id,
            context={"attempts": result.attempt_count, "status": result.status.value},
        ))

    def _record_failure(self, error: DeliveryError) -> None:
        self.last_error = error
        self.logger.warning(
            "Trade notification not delivered",
            trade_id=error.trade_id,
            event_name=error.event_name,
            error=error.message,
        )

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until nothing is pending or in flight. Returns False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while (self._pending or self._busy) and not self._closed:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._cond.wait(remaining)
            return True

    def close(self, timeout: Optional[float] = 1.0) -> None:
        """Stop the worker; pending events are discarded."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        if threading.current_thread() is not self._thread:
            self._thread.join(timeout)
        self.sink.close()

    def get_stats(self) -> dict[str, Any]:
        with self._cond:
            pending = len(self._pending)
        return {
            "id": self.id,
            "sink_name": self.handle.sink_name,
            "pending": pending,
            "delivered_count": self.delivered_count,
            "failed_count": self.failed_count,
            "dropped_count": self.dropped_count,
            "closed": self._closed,
        }
