"""
Logging configuration and utilities for the trade aggregation engine.
"""
from .config import configure_logging, configure_logging_from_params, get_logger

__all__ = ["configure_logging", "configure_logging_from_params", "get_logger"]
