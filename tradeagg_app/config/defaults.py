"""Default configuration parameters for the trade aggregation engine."""

from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN
from typing import Optional


@dataclass(frozen=True)
class TradeParams:
    """Trade field constraints."""
    symbol_max_length: int = 10                 # Ticker symbol length limit
    broker_id_max_length: int = 50              # Broker identifier length limit
    max_integer_digits: int = 18                # Digits allowed before the decimal point in price and quantity


@dataclass(frozen=True)
class StoreParams:
    """In-memory trade store parameters."""
    max_trades: Optional[int] = None            # Log capacity, None for unbounded
    sum_precision: int = 38                     # Significant digits for exact price sums
    average_places: int = 8                     # Decimal places kept on averages
    rounding: str = ROUND_HALF_EVEN             # Rounding applied to averages


@dataclass(frozen=True)
class FanoutParams:
    """Notification fanout parameters."""
    event_name: str = "ReceiveTrade"            # Event name passed to every sink
    max_pending: int = 1000                     # Pending events per subscriber before dropping oldest
    send_timeout_seconds: float = 5.0           # Per-subscriber send bound for network sinks
    retry_attempts: int = 0                     # Extra attempts per event per subscriber
    retry_delay_seconds: float = 0.1


@dataclass(frozen=True)
class LoggingParams:
    """Logging output parameters."""
    level: str = "INFO"
    format_json: bool = False
    include_timestamp: bool = True


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    trade: TradeParams
    store: StoreParams
    fanout: FanoutParams
    logging: LoggingParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        trade=TradeParams(),
        store=StoreParams(),
        fanout=FanoutParams(),
        logging=LoggingParams(),
    )
