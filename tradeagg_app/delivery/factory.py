"""Build sinks from configured destinations."""

from dataclasses import replace
from typing import Optional

from ..config.sinks import HttpSinkConfig, SinkDestination, SinkMethod
from .base import BaseTradeSink
from .http_sink import HttpTradeSink
from .memory_sink import MemoryTradeSink
from .stdout_sink import StdoutTradeSink

_SINK_TYPES = {
    SinkMethod.HTTP_POST: HttpTradeSink,
    SinkMethod.STDOUT: StdoutTradeSink,
    SinkMethod.MEMORY: MemoryTradeSink,
}


def create_sink(destination: SinkDestination, send_timeout: Optional[float] = None) -> BaseTradeSink:
    """
    Instantiate the sink for a configured destination.

    Args:
        destination: Configured destination
        send_timeout: Default per-send bound for network sinks without their own timeout
    """
    config = destination.config
    if isinstance(config, HttpSinkConfig) and config.timeout_seconds is None and send_timeout is not None:
        config = replace(config, timeout_seconds=send_timeout)
    return _SINK_TYPES[destination.method](destination.name, config)
