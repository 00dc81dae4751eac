"""Notification fanout of accepted trades to registered subscribers."""

import itertools
import threading
from collections.abc import Iterable
from typing import Any, Optional

from ..config.defaults import FanoutParams
from ..data.models import Trade
from ..delivery.base import BaseTradeSink
from ..logging.config import get_fanout_logger
from .subscription import Subscription, SubscriptionHandle

logger = get_fanout_logger(__name__)


class NotificationFanout:
    """
    Broadcasts each published trade to the subscribers registered at publish time.

    ``publish`` only enqueues; sink I/O runs on the subscribers' own workers,
    so publishing never blocks on a subscriber and never raises.
    """

    def __init__(self, params: Optional[FanoutParams] = None):
        self.params = params or FanoutParams()
        self.event_name = self.params.event_name
        self.logger = logger

        self._subscriptions: dict[int, Subscription] = {}
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._published_count = 0
        self._closed = False

    def subscribe(
        self,
        sink: BaseTradeSink,
        symbols: Optional[Iterable[str]] = None,
        after_trade_id: int = 0,
    ) -> SubscriptionHandle:
        """
        Register a subscriber.

        Args:
            sink: Delivery end of the subscriber
            symbols: Only deliver trades for these symbols; all when None
            after_trade_id: Skip trades with this id or lower

        Returns:
            Handle used to unsubscribe
        """
        with self._lock:
            if self._closed:
                raise RuntimeError("Notification fanout is closed")
            handle = SubscriptionHandle(id=next(self._ids), sink_name=sink.name)
            subscription = Subscription(
                handle,
                sink,
                self.params,
                symbols=frozenset(symbols) if symbols is not None else None,
                after_trade_id=after_trade_id,
            )
            self._subscriptions[handle.id] = subscription

        self.logger.info("Subscriber registered", subscription_id=handle.id, sink_name=sink.name)
        return handle

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        """Remove a subscriber. Returns False if it was not registered."""
        with self._lock:
            subscription = self._subscriptions.pop(handle.id, None)

        if subscription is None:
            return False

        subscription.close()
        self.logger.info("Subscriber removed", subscription_id=handle.id, sink_name=handle.sink_name)
        return True

    def publish(self, trade: Trade) -> int:
        """
        Deliver ``trade`` to the current subscriber set.

        Returns:
            Number of subscribers the trade was queued for
        """
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            self._published_count += 1

        queued = 0
        for subscription in subscriptions:
            if subscription.wants(trade) and subscription.enqueue(self.event_name, trade):
                queued += 1

        self.logger.debug("Trade published", trade_id=trade.id, symbol=trade.symbol, subscribers=queued)
        return queued

    def get_subscription(self, handle: SubscriptionHandle) -> Optional[Subscription]:
        with self._lock:
            return self._subscriptions.get(handle.id)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until every subscriber has drained its queue."""
        with self._lock:
            subscriptions = list(self._subscriptions.values())
        return all(subscription.wait_idle(timeout) for subscription in subscriptions)

    def close(self) -> None:
        """Stop all subscriber workers."""
        with self._lock:
            self._closed = True
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()

        for subscription in subscriptions:
            subscription.close()

    def get_stats(self) -> dict[str, Any]:
        with self._lock:
            subscriptions = list(self._subscriptions.values())
            published = self._published_count
        return {
            "event_name": self.event_name,
            "published_count": published,
            "subscriber_count": len(subscriptions),
            "subscriptions": [subscription.get_stats() for subscription in subscriptions],
        }
