"""
In-memory trade store.

Owns the append-only trade log and the per-symbol aggregates.
"""
from .trade_store import TradeStore

__all__ = ["TradeStore"]
