"""
Trade aggregation engine.

Creates the trade store, the notification fanout and the dispatcher that
connects them, and exposes the operations used by the transport layer.

Flow: submit -> TradeStore (validate, record, aggregate) -> outbox
      -> TradeDispatcher -> NotificationFanout -> per-subscriber sinks
"""

import queue
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Optional

import structlog

from .config.defaults import DefaultConfig
from .config.loader import ConfigLoader, build_config
from .config.sinks import parse_sink_destinations
from .config.validation import ConfigValidator
from .data.models import PriceResult, StockPrice, SubmitResult, TradeRequest
from .data.parsers import parse_trade_payload
from .delivery.base import BaseTradeSink
from .delivery.factory import create_sink
from .errors import ValidationError
from .fanout.dispatcher import TradeDispatcher
from .fanout.notifier import NotificationFanout
from .fanout.subscription import SubscriptionHandle
from .logging.config import configure_logging_from_params
from .store.trade_store import TradeStore

logger = structlog.get_logger(__name__)


class TradeAggregationEngine:
    """
    Owns one trade store and one fanout for the lifetime of the process.

    Create it once at startup and pass it to whatever serves requests;
    there is no module-level instance.
    """

    def __init__(
        self,
        config: Optional[DefaultConfig] = None,
        config_dir: Optional[str] = None,
        overrides: Optional[dict[str, Any]] = None,
        start: bool = True,
        configure_logs: bool = False,
    ) -> None:
        """
        Args:
            config: Ready-made configuration; skips file loading when given
            config_dir: Directory holding tradeagg.yaml
            overrides: Highest-priority configuration overrides
            start: Start the dispatcher thread immediately
            configure_logs: Apply the logging section to structlog and the root logger

        Raises:
            ValueError: If the merged configuration is invalid
        """
        self.logger = logger
        sink_entries: list[dict[str, Any]] = []

        if config is None:
            loader = ConfigLoader.create(Path(config_dir) if config_dir else None)
            merged = loader.merge_config(overrides)
            errors = ConfigValidator.validate_config(merged)
            if errors:
                raise ValueError("Invalid configuration: " + "; ".join(str(err) for err in errors))
            sink_entries = merged.get("sinks") or []
            config = build_config(merged)

        self.config = config
        if configure_logs:
            configure_logging_from_params(config.logging)

        self.outbox: queue.Queue = queue.Queue()
        self.store = TradeStore(config, outbox=self.outbox)
        self.fanout = NotificationFanout(config.fanout)
        self.dispatcher = TradeDispatcher(self.outbox, self.fanout)

        self._subscribe_configured_sinks(sink_entries)

        if start:
            self.start()

        self.logger.info("Trade aggregation engine initialized",
                         subscribers=self.fanout.subscriber_count)

    def _subscribe_configured_sinks(self, entries: list[dict[str, Any]]) -> None:
        destinations, errors = parse_sink_destinations(entries)
        for err in errors:
            self.logger.error("Skipping invalid sink configuration", field=err.field, error=err.message)

        for destination in destinations:
            if not destination.enabled:
                continue
            sink = create_sink(destination, send_timeout=self.config.fanout.send_timeout_seconds)
            self.fanout.subscribe(sink, symbols=destination.symbols_filter)

    def start(self) -> None:
        self.dispatcher.start()

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """
        Deliver queued notifications and stop all worker threads.

        Events still pending after ``timeout`` are dropped.
        """
        self.dispatcher.stop(timeout)
        if not self.fanout.wait_idle(timeout):
            self.logger.warning("Closing with undelivered notifications", timeout=timeout)
        self.fanout.close()
        self.logger.info("Trade aggregation engine closed")

    def __enter__(self) -> "TradeAggregationEngine":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def submit(self, request: TradeRequest) -> SubmitResult:
        """Record a trade; accepted trades are broadcast after the store commits."""
        return self.store.submit(request)

    def submit_payload(self, payload: dict[str, Any]) -> SubmitResult:
        """Parse a decoded request body and submit it."""
        try:
            request = parse_trade_payload(payload)
        except ValidationError as e:
            self.logger.warning("Trade payload rejected", fields=e.fields, error=e.message)
            return SubmitResult.rejected(e)
        return self.submit(request)

    def average_price(self, symbol: str) -> PriceResult:
        return self.store.average_price(symbol)

    def all_average_prices(self) -> list[StockPrice]:
        return self.store.all_average_prices()

    def average_prices(self, symbols: Optional[Iterable[str]] = None) -> list[StockPrice]:
        """Averages for ``symbols``, or for every known symbol when None."""
        if symbols is None:
            return self.store.all_average_prices()
        return self.store.average_prices(symbols)

    def subscribe(self, sink: BaseTradeSink, symbols: Optional[Iterable[str]] = None) -> SubscriptionHandle:
        """Register a subscriber for trades accepted from now on."""
        return self.fanout.subscribe(sink, symbols=symbols, after_trade_id=self.store.last_trade_id())

    def unsubscribe(self, handle: SubscriptionHandle) -> bool:
        return self.fanout.unsubscribe(handle)

    def wait_idle(self, timeout: Optional[float] = 5.0) -> bool:
        """Wait until every accepted trade has reached every subscriber's sink."""
        return self.dispatcher.wait_idle(timeout) and self.fanout.wait_idle(timeout)

    def get_stats(self) -> dict[str, Any]:
        return {
            "store": self.store.get_stats(),
            "fanout": self.fanout.get_stats(),
            "outbox_pending": self.outbox.qsize(),
        }
