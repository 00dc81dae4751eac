"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

import pytest

from tradeagg_app.data.models import TradeRequest
from tradeagg_app.delivery.memory_sink import MemoryTradeSink
from tradeagg_app.engine import TradeAggregationEngine
from tradeagg_app.store.trade_store import TradeStore


def _make_request(symbol: str = "TCS", price: str = "2500", quantity: str = "10",
                 broker_id: str = "BRK-001", timestamp=None) -> TradeRequest:
    """Build a trade request with decimal fields from strings."""
    return TradeRequest(
        symbol=symbol,
        price=Decimal(price),
        quantity=Decimal(quantity),
        broker_id=broker_id,
        timestamp=timestamp,
    )


@pytest.fixture
def sample_trade_payload() -> Dict[str, Any]:
    """Sample trade body as sent by API clients."""
    return {
        "tickerSymbol": "TCS",
        "price": "2500.50",
        "quantity": "10",
        "brokerId": "BRK-001",
        "timestamp": "2024-01-15T09:30:00Z",
    }


@pytest.fixture
def sample_timestamp() -> datetime:
    return datetime(2024, 1, 15, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> TradeStore:
    return TradeStore()


@pytest.fixture
def engine(tmp_path):
    """Engine with no config file and no configured sinks."""
    engine = TradeAggregationEngine(config_dir=str(tmp_path))
    yield engine
    engine.close()


@pytest.fixture
def memory_sink() -> MemoryTradeSink:
    return MemoryTradeSink("test-client")


@pytest.fixture
def trade_request():
    """Factory for trade requests; keyword arguments override the defaults."""
    return _make_request
