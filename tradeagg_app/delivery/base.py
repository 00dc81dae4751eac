"""Base classes for trade notification sinks."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..logging.config import get_logger


class DeliveryStatus(Enum):
    """Notification delivery status."""
    SUCCESS = "success"
    FAILED = "failed"
    DEAD_LETTER = "dead_letter"


@dataclass
class DeliveryResult:
    """Result of one broadcast attempt to one sink."""
    status: DeliveryStatus
    message: Optional[str] = None
    attempt_count: int = 1
    delivery_time_ms: Optional[int] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == DeliveryStatus.SUCCESS


class SinkError(Exception):
    """Base exception for sink errors."""
    pass


class SinkRetryableError(SinkError):
    """Transient sink error, worth another attempt."""
    pass


class SinkPermanentError(SinkError):
    """Sink error that should not be retried."""
    pass


class BaseTradeSink(ABC):
    """
    Base class for subscribers of accepted trades.

    A sink is the per-subscriber end of the pub/sub transport: it exposes a
    single ``broadcast(event_name, payload)`` primitive.
    """

    def __init__(self, name: str, config: Any = None):
        self.name = name
        self.config = config
        self.logger = get_logger(f"tradeagg.sink.{name}")
        self._delivery_count = 0
        self._error_count = 0

    @abstractmethod
    def broadcast(self, event_name: str, payload: dict[str, Any]) -> DeliveryResult:
        """
        Deliver one event to this subscriber.

        Args:
            event_name: Event name, e.g. "ReceiveTrade"
            payload: JSON-safe event body

        Returns:
            Delivery result; may also raise SinkError subclasses
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the sink can currently accept events."""
        pass

    def close(self) -> None:
        """Release sink resources."""
        pass

    def broadcast_with_retry(
        self,
        event_name: str,
        payload: dict[str, Any],
        max_retries: int = 0,
        retry_delay: float = 0.1
    ) -> DeliveryResult:
        """
        Broadcast with retry logic.

        Never raises; the outcome is reported in the returned result.

        Args:
            event_name: Event name
            payload: JSON-safe event body
            max_retries: Maximum number of retry attempts
            retry_delay: Delay between retries in seconds
        """
        attempt = 0
        last_error: Optional[Exception] = None

        while attempt <= max_retries:
            try:
                start_time = time.time()
                result = self.broadcast(event_name, payload)
                delivery_time = int((time.time() - start_time) * 1000)

                if result.ok:
                    result.delivery_time_ms = delivery_time
                    result.attempt_count = attempt + 1
                    self._delivery_count += 1
                    return result

                last_error = result.error or SinkError(result.message or "delivery failed")

            except SinkPermanentError as e:
                self._error_count += 1
                return DeliveryResult(
                    status=DeliveryStatus.FAILED,
                    message=f"Permanent error: {str(e)}",
                    attempt_count=attempt + 1,
                    error=e
                )

            except Exception as e:
                # Unknown error - treat as retryable
                last_error = e

            attempt += 1

            if attempt <= max_retries:
                self.logger.warning(
                    f"Broadcast attempt {attempt} failed, retrying in {retry_delay}s",
                    sink_name=self.name,
                    error=str(last_error)
                )
                time.sleep(retry_delay)

        self._error_count += 1
        return DeliveryResult(
            status=DeliveryStatus.DEAD_LETTER if max_retries else DeliveryStatus.FAILED,
            message=f"Delivery failed after {attempt} attempt(s): {str(last_error)}",
            attempt_count=attempt,
            error=last_error
        )

    def get_stats(self) -> dict[str, Any]:
        """Get delivery statistics."""
        return {
            "name": self.name,
            "delivery_count": self._delivery_count,
            "error_count": self._error_count,
            "success_rate": (
                self._delivery_count / (self._delivery_count + self._error_count)
                if (self._delivery_count + self._error_count) > 0 else 0.0
            )
        }

    def reset_stats(self):
        """Reset delivery statistics."""
        self._delivery_count = 0
        self._error_count = 0
