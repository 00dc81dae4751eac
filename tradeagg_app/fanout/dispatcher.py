"""Moves accepted trades from the store outbox to the fanout."""

import queue
import threading
import time
from typing import Optional

from ..logging.config import get_fanout_logger
from .notifier import NotificationFanout

logger = get_fanout_logger(__name__)

_STOP = object()


class TradeDispatcher:
    """
    Drains the store outbox on a single thread and publishes in outbox order.

    The store hands trades to the outbox in id order, so every subscriber
    sees trades in acceptance order.
    """

    def __init__(self, outbox: queue.Queue, fanout: NotificationFanout):
        self.outbox = outbox
        self.fanout = fanout
        self.logger = logger
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(target=self._run, name="tradeagg-dispatcher", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while True:
            item = self.outbox.get()
            try:
                if item is _STOP:
                    return
                self.fanout.publish(item)
            except Exception:
                self.logger.exception("Failed to publish trade", trade_id=getattr(item, "id", None))
            finally:
                self.outbox.task_done()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until every queued trade has been handed to the fanout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        with self.outbox.all_tasks_done:
            while self.outbox.unfinished_tasks:
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self.outbox.all_tasks_done.wait(remaining)
        return True

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Publish what is already queued, then stop the thread."""
        if not self.running:
            return
        self.outbox.put(_STOP)
        self._thread.join(timeout)
        self._thread = None
