"""
Trade payload parsers for the transport boundary.

Converts JSON bodies and query strings into typed requests before they
reach the store. Decimal fields never pass through binary floating point.
"""

import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..errors import FieldError, ValidationError
from ..utils.time import ensure_utc, parse_trade_time
from .models import TradeRequest

# Accepted spellings per field; the camelCase names match the public API.
FIELD_ALIASES = {
    "symbol": ("tickerSymbol", "symbol"),
    "price": ("price",),
    "quantity": ("quantity",),
    "broker_id": ("brokerId", "broker_id"),
    "timestamp": ("timestamp",),
}


class ParseError(ValidationError):
    """Raised when a payload cannot be turned into a trade request."""
    pass


def parse_json_payload(raw: str | bytes) -> dict[str, Any]:
    """
    Parse a JSON body with numbers read as Decimal.

    Raises:
        ParseError: If the body is not a JSON object
    """
    try:
        data = json.loads(raw, parse_float=Decimal)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError(f"Invalid JSON payload: {e}",
                         field_errors=[FieldError("body", "Must be valid JSON")]) from e

    if not isinstance(data, dict):
        raise ParseError("Trade payload must be a JSON object",
                         field_errors=[FieldError("body", "Must be a JSON object", type(data).__name__)])
    return data


def parse_decimal(value: Any) -> Decimal:
    """
    Convert a payload value to Decimal.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError("booleans are not numbers")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as e:
            raise ValueError(f"not a number: {value!r}") from e
    else:
        raise ValueError(f"unsupported type {type(value).__name__}")

    if not result.is_finite():
        raise ValueError("must be finite")
    return result


def _lookup(payload: dict[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if key in payload:
            return payload[key]
    return None


def parse_trade_payload(payload: dict[str, Any]) -> TradeRequest:
    """
    Build a TradeRequest from a decoded payload.

    Only shape and type problems are reported here; range and length checks
    are left to the trade validator so both report with the same field names.

    Raises:
        ParseError: If required fields are missing or malformed
    """
    errors: list[FieldError] = []

    symbol = _lookup(payload, "symbol")
    broker_id = _lookup(payload, "broker_id")
    for field, value in (("symbol", symbol), ("broker_id", broker_id)):
        if value is None:
            errors.append(FieldError(field, "Is required"))
        elif not isinstance(value, str):
            errors.append(FieldError(field, "Must be a string", value))

    amounts: dict[str, Optional[Decimal]] = {}
    for field in ("price", "quantity"):
        raw = _lookup(payload, field)
        amounts[field] = None
        if raw is None:
            errors.append(FieldError(field, "Is required"))
            continue
        try:
            amounts[field] = parse_decimal(raw)
        except ValueError as e:
            errors.append(FieldError(field, f"Must be a number ({e})", raw))

    timestamp: Optional[datetime] = None
    raw_ts = _lookup(payload, "timestamp")
    if isinstance(raw_ts, datetime):
        timestamp = ensure_utc(raw_ts)
    elif isinstance(raw_ts, str):
        try:
            timestamp = parse_trade_time(raw_ts)
        except ValueError:
            errors.append(FieldError("timestamp", "Must be an ISO-8601 timestamp", raw_ts))
    elif raw_ts is not None:
        errors.append(FieldError("timestamp", "Must be an ISO-8601 timestamp", raw_ts))

    if errors:
        raise ParseError(
            "Malformed trade payload: " + "; ".join(str(err) for err in errors),
            field_errors=errors,
        )

    return TradeRequest(
        symbol=symbol,
        price=amounts["price"],
        quantity=amounts["quantity"],
        broker_id=broker_id,
        timestamp=timestamp,
    )


def parse_ticker_list(tickers: Optional[str]) -> Optional[frozenset[str]]:
    """
    Parse a comma-delimited ticker list.

    Returns None when the parameter is absent or blank, meaning all symbols.
    Blank entries are dropped and surrounding whitespace is stripped.
    """
    if tickers is None or not tickers.strip():
        return None
    return frozenset(t.strip() for t in tickers.split(",") if t.strip())
