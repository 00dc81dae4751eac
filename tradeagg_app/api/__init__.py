"""
Transport boundary handlers.

Map request data onto engine calls and engine results onto status codes and
JSON-safe bodies. No server is bundled; any HTTP framework can call these.
"""
from .handlers import ApiResponse, TradeApi

__all__ = ["ApiResponse", "TradeApi"]
