"""
Centralized logging configuration for the trade aggregation engine.

All components log through structlog so that trade acceptance, rejection
and delivery events share one structured format.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger

from ..config.defaults import LoggingParams


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_logging_from_params(params: LoggingParams) -> None:
    """Configure structlog from the ``logging`` section of the engine config."""
    configure_logging(
        level=params.level,
        format_json=params.format_json,
        include_timestamp=params.include_timestamp,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_store_logger(name: str) -> FilteringBoundLogger:
    """Logger bound with trade store context, used for the audit trail of writes."""
    return get_logger(name).bind(
        subsystem="trade_store",
        audit_trail=True
    )


def get_fanout_logger(name: str) -> FilteringBoundLogger:
    """Logger bound with notification fanout context."""
    return get_logger(name).bind(subsystem="fanout")


def log_trade_accepted(
    logger: FilteringBoundLogger,
    trade_id: int,
    symbol: str,
    broker_id: str,
    trade_count: int,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log an accepted trade with standardized format.

    Args:
        logger: Structlog logger instance
        trade_id: Id assigned by the store
        symbol: Ticker symbol of the trade
        broker_id: Broker that reported the trade
        trade_count: Number of trades for the symbol after this one
        context: Additional context data
    """
    bound_logger = logger.bind(
        trade_id=trade_id,
        symbol=symbol,
        broker_id=broker_id,
        trade_count=trade_count,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Trade accepted")


def log_trade_rejected(
    logger: FilteringBoundLogger,
    symbol: Optional[str],
    reason: str,
    fields: Optional[list[str]] = None
) -> None:
    """Log a rejected trade submission."""
    logger.warning(
        "Trade rejected",
        symbol=symbol,
        reason=reason,
        fields=fields or [],
    )
