"""In-process trade sink for embedded clients."""

import threading
from collections import deque
from typing import Any, Optional

from ..config.sinks import MemorySinkConfig
from .base import BaseTradeSink, DeliveryResult, DeliveryStatus


class MemoryTradeSink(BaseTradeSink):
    """Buffers received events in memory, in delivery order."""

    def __init__(self, name: str, config: Optional[MemorySinkConfig] = None):
        super().__init__(name, config or MemorySinkConfig())
        self._events: deque[tuple[str, dict[str, Any]]] = deque(maxlen=self.config.max_events)
        self._lock = threading.Lock()
        self._closed = False

    def broadcast(self, event_name: str, payload: dict[str, Any]) -> DeliveryResult:
        with self._lock:
            if self._closed:
                return DeliveryResult(status=DeliveryStatus.FAILED, message="Sink closed")
            self._events.append((event_name, payload))
        return DeliveryResult(status=DeliveryStatus.SUCCESS)

    @property
    def events(self) -> list[tuple[str, dict[str, Any]]]:
        """Received (event_name, payload) pairs."""
        with self._lock:
            return list(self._events)

    @property
    def received(self) -> list[dict[str, Any]]:
        """Received payloads."""
        return [payload for _, payload in self.events]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def health_check(self) -> bool:
        return not self._closed

    def close(self) -> None:
        with self._lock:
            self._closed = True
