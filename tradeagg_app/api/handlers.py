"""Request handlers for the stocks endpoints."""

from dataclasses import dataclass
from typing import Any, Optional

import structlog

from ..data.parsers import ParseError, parse_json_payload, parse_ticker_list
from ..engine import TradeAggregationEngine

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """Status code and JSON-safe body."""
    status: int
    body: Any = None


class TradeApi:
    """Handlers for POST /stocks/trades, GET /stocks/price/{symbol} and GET /stocks."""

    def __init__(self, engine: TradeAggregationEngine):
        self.engine = engine
        self.logger = logger

    def submit_trade(self, payload: dict[str, Any] | str | bytes) -> ApiResponse:
        """
        Submit a trade from a decoded or raw JSON body.

        Returns 201 with the stored trade, 400 with field errors, or 500 when
        the store could not record it.
        """
        if not isinstance(payload, dict):
            try:
                payload = parse_json_payload(payload)
            except ParseError as e:
                return ApiResponse(400, {"errors": e.to_dict()})

        result = self.engine.submit_payload(payload)
        if result.success:
            return ApiResponse(201, result.trade.to_payload())

        if result.is_validation_error:
            return ApiResponse(400, {"errors": result.error.to_dict()})

        self.logger.error("Error creating trade", error=result.error.message)
        return ApiResponse(500, {"error": "Internal Server Error"})

    def get_price(self, symbol: str) -> ApiResponse:
        """Average price for one symbol: 200, or 404 when it has no trades."""
        result = self.engine.average_price(symbol)
        if not result.success:
            self.logger.warning("Stock not found", symbol=symbol)
            return ApiResponse(404, {"error": result.error.message})
        return ApiResponse(200, result.price.to_payload())

    def get_prices(self, tickers: Optional[str] = None) -> ApiResponse:
        """Averages for a comma-separated ticker list, or every symbol when absent."""
        symbols = parse_ticker_list(tickers)
        prices = self.engine.average_prices(symbols)
        return ApiResponse(200, [price.to_payload() for price in prices])
