"""Webhook trade sink posting each event over HTTP."""

import json
import socket
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from ..config.sinks import HttpSinkConfig
from .base import (
    BaseTradeSink,
    DeliveryResult,
    DeliveryStatus,
    SinkPermanentError,
    SinkRetryableError,
)

DEFAULT_TIMEOUT_SECONDS = 5.0


class HttpTradeSink(BaseTradeSink):
    """Posts ``{"event": ..., "data": ...}`` to a webhook URL."""

    def __init__(self, name: str, config: HttpSinkConfig):
        super().__init__(name, config)
        self.config: HttpSinkConfig = config

        parsed = urlparse(config.url)
        if not parsed.scheme or not parsed.netloc:
            raise SinkPermanentError(f"Invalid URL: {config.url}")
        self.timeout = config.timeout_seconds if config.timeout_seconds is not None else DEFAULT_TIMEOUT_SECONDS

    def broadcast(self, event_name: str, payload: dict[str, Any]) -> DeliveryResult:
        """
        Post one event. The request is bounded by ``self.timeout``.

        Raises:
            SinkRetryableError: On network errors and 5xx responses
            SinkPermanentError: On 4xx responses and unencodable payloads
        """
        try:
            data = json.dumps({"event": event_name, "data": payload}).encode('utf-8')
        except (TypeError, ValueError) as e:
            self.logger.error(
                "Trade event JSON error",
                sink_name=self.name,
                trade_id=payload.get("tradeId"),
                error=str(e)
            )
            raise SinkPermanentError(f"JSON encoding error: {str(e)}") from e

        headers = {
            'Content-Type': 'application/json',
            'Content-Length': str(len(data)),
            'User-Agent': 'tradeagg-app/1.0'
        }
        if self.config.headers:
            headers.update(self.config.headers)

        req = Request(
            self.config.url,
            data=data,
            headers=headers,
            method=self.config.method
        )

        try:
            with urlopen(req, timeout=self.timeout) as response:
                response_code = response.getcode()
                response_data = response.read().decode('utf-8', errors='replace')

        except HTTPError as e:
            error_msg = f"HTTP {e.code}: {e.reason}"
            self.logger.warning(
                "Trade event HTTP error",
                sink_name=self.name,
                trade_id=payload.get("tradeId"),
                error_code=e.code,
                error_reason=e.reason
            )
            if e.code >= 500:
                raise SinkRetryableError(error_msg) from e
            raise SinkPermanentError(error_msg) from e

        except (URLError, socket.timeout, OSError) as e:
            self.logger.warning(
                "Trade event network error",
                sink_name=self.name,
                trade_id=payload.get("tradeId"),
                error=str(e)
            )
            raise SinkRetryableError(f"Network error: {str(e)}") from e

        if 200 <= response_code < 300:
            self.logger.debug(
                "Trade event delivered",
                sink_name=self.name,
                trade_id=payload.get("tradeId"),
                response_code=response_code
            )
            return DeliveryResult(
                status=DeliveryStatus.SUCCESS,
                message=f"HTTP {response_code}: {response_data[:100]}"
            )

        error_msg = f"HTTP {response_code}: {response_data[:200]}"
        if response_code >= 500:
            raise SinkRetryableError(error_msg)
        raise SinkPermanentError(error_msg)

    def health_check(self) -> bool:
        """Check if the webhook host is reachable."""
        parsed = urlparse(self.config.url)
        req = Request(f"{parsed.scheme}://{parsed.netloc}", method='HEAD')
        try:
            with urlopen(req, timeout=self.timeout) as response:
                return 200 <= response.getcode() < 400
        except (URLError, socket.timeout, OSError) as e:
            self.logger.warning(
                "Health check failed",
                sink_name=self.name,
                error=str(e)
            )
            return False
