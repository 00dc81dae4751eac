"""Tests for the in-memory trade store."""

import queue
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tradeagg_app.config.defaults import DefaultConfig, StoreParams, get_default_config
from tradeagg_app.data.models import SymbolAggregate
from tradeagg_app.errors import NotFoundError, StorageError, ValidationError
from tradeagg_app.store.trade_store import TradeStore


def config_with_store(**kwargs) -> DefaultConfig:
    defaults = get_default_config()
    return DefaultConfig(
        trade=defaults.trade,
        store=StoreParams(**kwargs),
        fanout=defaults.fanout,
        logging=defaults.logging,
    )


class TestSubmit:
    """Test trade submission."""

    def test_submit_assigns_id_and_returns_stored_trade(self, store, trade_request):
        """Test that an accepted trade carries its assigned id."""
        result = store.submit(trade_request(symbol="TCS", price="2500", quantity="3"))

        assert result.success is True
        assert result.error is None
        assert result.trade.id == 1
        assert result.trade.symbol == "TCS"
        assert result.trade.price == Decimal("2500")
        assert result.trade.quantity == Decimal("3")
        assert result.trade.broker_id == "BRK-001"

    def test_ids_are_sequential_in_acceptance_order(self, store, trade_request):
        ids = [store.submit(trade_request(symbol=s)).trade.id for s in ("TCS", "SBI", "TCS")]
        assert ids == [1, 2, 3]

    def test_submit_defaults_timestamp_to_acceptance_time(self, trade_request):
        """Test that a missing timestamp is filled from the clock."""
        fixed = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
        store = TradeStore(clock=lambda: fixed)

        result = store.submit(trade_request())

        assert result.trade.timestamp == fixed

    def test_submit_keeps_caller_timestamp(self, store, trade_request, sample_timestamp):
        result = store.submit(trade_request(timestamp=sample_timestamp))
        assert result.trade.timestamp == sample_timestamp

    def test_submit_updates_aggregate(self, store, trade_request):
        store.submit(trade_request(symbol="TCS", price="2400"))
        store.submit(trade_request(symbol="TCS", price="2600"))

        aggregate = store.get_aggregate("TCS")
        assert aggregate.trade_count == 2
        assert aggregate.price_sum == Decimal("5000")
        assert aggregate.average_price == Decimal("2500")

    def test_identical_trades_are_not_deduplicated(self, store, trade_request, sample_timestamp):
        """Test that repeated identical submissions are stored separately."""
        first = store.submit(trade_request(price="100", timestamp=sample_timestamp))
        second = store.submit(trade_request(price="100", timestamp=sample_timestamp))

        assert first.trade.id != second.trade.id
        assert store.get_aggregate("TCS").trade_count == 2
        assert store.trade_count() == 2

    def test_zero_price_and_quantity_are_accepted(self, store, trade_request):
        result = store.submit(trade_request(price="0", quantity="0"))

        assert result.success is True
        assert store.average_price("TCS").average_price == Decimal("0")

    def test_symbols_are_case_sensitive(self, store, trade_request):
        store.submit(trade_request(symbol="tcs", price="10"))
        store.submit(trade_request(symbol="TCS", price="20"))

        assert store.get_aggregate("tcs").trade_count == 1
        assert store.get_aggregate("TCS").trade_count == 1


class TestSubmitValidation:
    """Test that invalid trades are rejected without state changes."""

    def test_negative_price_rejected(self, store, trade_request):
        store.submit(trade_request(symbol="TCS", price="2500"))

        result = store.submit(trade_request(symbol="TCS", price="-1"))

        assert result.success is False
        assert result.is_validation_error
        assert isinstance(result.error, ValidationError)
        assert result.error.fields == ["price"]
        assert store.get_aggregate("TCS").trade_count == 1
        assert store.average_price("TCS").average_price == Decimal("2500")

    def test_negative_price_on_new_symbol_leaves_no_aggregate(self, store, trade_request):
        store.submit(trade_request(symbol="NEW", price="-1"))

        assert store.average_price("NEW").success is False
        assert store.all_average_prices() == []
        assert store.trade_count() == 0

    def test_rejected_trade_does_not_consume_id(self, store, trade_request):
        store.submit(trade_request(price="-5"))
        result = store.submit(trade_request(price="5"))

        assert result.trade.id == 1

    @pytest.mark.parametrize("symbol", ["", "   ", "ABCDEFGHIJK"])
    def test_bad_symbol_rejected(self, store, trade_request, symbol):
        result = store.submit(trade_request(symbol=symbol))

        assert result.success is False
        assert result.error.fields == ["symbol"]

    def test_symbol_at_max_length_accepted(self, store, trade_request):
        assert store.submit(trade_request(symbol="ABCDEFGHIJ")).success is True

    @pytest.mark.parametrize("broker_id", ["", "B" * 51])
    def test_bad_broker_rejected(self, store, trade_request, broker_id):
        result = store.submit(trade_request(broker_id=broker_id))

        assert result.success is False
        assert result.error.fields == ["broker_id"]

    def test_all_failing_fields_reported(self, store, trade_request):
        result = store.submit(trade_request(symbol="", price="-1", quantity="-2", broker_id=""))

        assert set(result.error.fields) == {"symbol", "price", "quantity", "broker_id"}

    def test_rejected_trade_is_not_sent_to_outbox(self, trade_request):
        outbox = queue.Queue()
        store = TradeStore(outbox=outbox)

        store.submit(trade_request(price="-1"))

        assert outbox.empty()

    @pytest.mark.parametrize("price", ["1E+40", "1000000000000000000"])
    def test_price_with_too_many_integer_digits_rejected(self, store, trade_request, price):
        store.submit(trade_request(symbol="SBI", price="560"))

        result = store.submit(trade_request(symbol="TCS", price=price))

        assert result.is_validation_error
        assert result.error.fields == ["price"]
        assert store.average_price("TCS").success is False
        assert [p.symbol for p in store.all_average_prices()] == ["SBI"]
        assert store.average_prices(["TCS", "SBI"])[0].average_price == Decimal("560")

    def test_largest_allowed_price_can_be_averaged(self, store, trade_request):
        top = "999999999999999999.99999999"
        store.submit(trade_request(price=top))
        store.submit(trade_request(price=top))

        assert store.average_price("TCS").average_price == Decimal(top)
        assert store.all_average_prices()[0].average_price == Decimal(top)


class TestSubmitStorageFailure:
    """Test that storage failures are all-or-nothing."""

    def test_log_capacity_exceeded(self, trade_request):
        outbox = queue.Queue()
        store = TradeStore(config=config_with_store(max_trades=2), outbox=outbox)
        store.submit(trade_request(price="10"))
        store.submit(trade_request(price="20"))

        result = store.submit(trade_request(price="30"))

        assert result.success is False
        assert result.is_storage_error
        assert isinstance(result.error, StorageError)
        assert result.error.operation == "append"
        assert result.error.recoverable is False
        aggregate = store.get_aggregate("TCS")
        assert aggregate.trade_count == 2
        assert aggregate.price_sum == Decimal("30")
        assert outbox.qsize() == 2
        assert store.get_stats()["failed_count"] == 1

    def test_inexact_sum_is_storage_error(self, trade_request):
        """Test that a sum that cannot be held exactly is refused, not rounded."""
        store = TradeStore(config=config_with_store(sum_precision=5))
        store.submit(trade_request(price="99999"))

        result = store.submit(trade_request(price="0.5"))

        assert result.is_storage_error
        assert result.error.operation == "aggregate"
        aggregate = store.get_aggregate("TCS")
        assert aggregate.trade_count == 1
        assert aggregate.price_sum == Decimal("99999")

    def test_failure_on_new_symbol_consumes_no_id(self, trade_request):
        store = TradeStore(config=config_with_store(max_trades=1))
        store.submit(trade_request(symbol="TCS"))

        store.submit(trade_request(symbol="SBI"))

        assert store.average_price("SBI").success is False
        assert [t.id for t in store.trades()] == [1]


class TestQueries:
    """Test average price queries."""

    def seed(self, store, trade_request):
        for symbol, prices in {
            "TCS": ["2400", "2600", "2500"],
            "SBI": ["550", "570"],
            "IRB": ["120"],
            "INFY": ["1500", "1501"],
            "HDFC": ["1600.25", "1599.75"],
        }.items():
            for price in prices:
                assert store.submit(trade_request(symbol=symbol, price=price)).success

    def test_average_price_unknown_symbol_is_not_found(self, store):
        """Test that a symbol without trades is absent rather than zero."""
        result = store.average_price("NOPE")

        assert result.success is False
        assert result.price is None
        assert result.average_price is None
        assert isinstance(result.error, NotFoundError)
        assert result.error.symbol == "NOPE"

    def test_average_price(self, store, trade_request):
        self.seed(store, trade_request)

        result = store.average_price("TCS")

        assert result.success is True
        assert result.price.symbol == "TCS"
        assert result.average_price == Decimal("2500")

    def test_average_price_is_quantized(self, store, trade_request):
        for price in ("1", "1", "2"):
            store.submit(trade_request(symbol="X", price=price))

        assert store.average_price("X").average_price == Decimal("1.33333333")

    def test_average_prices_filters_requested_symbols(self, store, trade_request):
        self.seed(store, trade_request)

        prices = store.average_prices({"TCS", "SBI"})

        assert {p.symbol: p.average_price for p in prices} == {
            "TCS": Decimal("2500"),
            "SBI": Decimal("560"),
        }

    def test_average_prices_drops_unknown_and_collapses_duplicates(self, store, trade_request):
        self.seed(store, trade_request)

        prices = store.average_prices(["IRB", "IRB", "UNKNOWN"])

        assert [(p.symbol, p.average_price) for p in prices] == [("IRB", Decimal("120"))]

    def test_average_prices_empty_request(self, store, trade_request):
        self.seed(store, trade_request)
        assert store.average_prices(set()) == []

    def test_all_average_prices(self, store, trade_request):
        self.seed(store, trade_request)

        prices = store.all_average_prices()

        assert len(prices) == 5
        assert {p.symbol: p.average_price for p in prices} == {
            "TCS": Decimal("2500"),
            "SBI": Decimal("560"),
            "IRB": Decimal("120"),
            "INFY": Decimal("1500.5"),
            "HDFC": Decimal("1600"),
        }

    def test_all_average_prices_empty_store(self, store):
        assert store.all_average_prices() == []

    def test_trades_log_snapshot(self, store, trade_request):
        self.seed(store, trade_request)

        assert [t.id for t in store.trades()] == list(range(1, 11))
        assert [t.price for t in store.trades("SBI")] == [Decimal("550"), Decimal("570")]
        assert sorted(store.symbols()) == ["HDFC", "INFY", "IRB", "SBI", "TCS"]

    def test_get_stats(self, store, trade_request):
        self.seed(store, trade_request)
        store.submit(trade_request(price="-1"))

        stats = store.get_stats()

        assert stats["trade_count"] == 10
        assert stats["symbol_count"] == 5
        assert stats["rejected_count"] == 1
        assert stats["failed_count"] == 0


class TestOutbox:
    """Test the accepted-trade hand-off."""

    def test_accepted_trades_enqueued_in_id_order(self, trade_request):
        outbox = queue.Queue()
        store = TradeStore(outbox=outbox)

        for symbol in ("A", "B", "A", "C"):
            store.submit(trade_request(symbol=symbol))

        ids = [outbox.get_nowait().id for _ in range(outbox.qsize())]
        assert ids == [1, 2, 3, 4]

    def test_aggregate_installed_before_trade_reaches_outbox(self, trade_request):
        seen = []

        class RecordingQueue(queue.Queue):
            def put_nowait(self, item):
                seen.append(store.get_aggregate(item.symbol).trade_count)
                super().put_nowait(item)

        store = TradeStore(outbox=RecordingQueue())

        store.submit(trade_request(symbol="TCS"))
        store.submit(trade_request(symbol="TCS"))
        store.submit(trade_request(symbol="SBI"))

        assert seen == [1, 2, 1]

    def test_symbol_lock_released_before_outbox_hand_off(self, trade_request):
        locked = []

        class RecordingQueue(queue.Queue):
            def put_nowait(self, item):
                locked.append(store._slots[item.symbol].lock.locked())
                super().put_nowait(item)

        store = TradeStore(outbox=RecordingQueue())

        store.submit(trade_request())

        assert locked == [False]

    def test_last_trade_id(self, store, trade_request):
        assert store.last_trade_id() == 0

        store.submit(trade_request())
        store.submit(trade_request(price="-1"))

        assert store.last_trade_id() == 1


class TestSymbolAggregate:
    """Test aggregate snapshots."""

    def test_empty_aggregate_has_no_average(self):
        assert SymbolAggregate("TCS").average_price is None

    def test_with_trade_returns_new_snapshot(self):
        from decimal import Context
        first = SymbolAggregate("TCS")

        second = first.with_trade(Decimal("10.5"), Context())

        assert first.trade_count == 0
        assert second.trade_count == 1
        assert second.price_sum == Decimal("10.5")
