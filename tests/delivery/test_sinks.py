"""Tests for trade notification sinks."""

import json
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError

import pytest

from tradeagg_app.config.sinks import HttpSinkConfig, MemorySinkConfig, StdoutSinkConfig
from tradeagg_app.delivery.base import (
    DeliveryStatus,
    SinkPermanentError,
    SinkRetryableError,
)
from tradeagg_app.delivery.http_sink import HttpTradeSink
from tradeagg_app.delivery.memory_sink import MemoryTradeSink
from tradeagg_app.delivery.stdout_sink import StdoutTradeSink

PAYLOAD = {"tradeId": 7, "tickerSymbol": "TCS", "price": "2500", "quantity": "1"}


def mock_response(code: int, body: str = "ok"):
    response = MagicMock()
    response.getcode.return_value = code
    response.read.return_value = body.encode("utf-8")
    response.__enter__.return_value = response
    return response


class TestMemoryTradeSink:
    """Test MemoryTradeSink class."""

    def test_broadcast_records_event(self):
        sink = MemoryTradeSink("client")

        result = sink.broadcast("ReceiveTrade", PAYLOAD)

        assert result.status == DeliveryStatus.SUCCESS
        assert sink.events == [("ReceiveTrade", PAYLOAD)]
        assert sink.received == [PAYLOAD]

    def test_max_events_keeps_newest(self):
        sink = MemoryTradeSink("client", MemorySinkConfig(max_events=2))
        for i in range(3):
            sink.broadcast("ReceiveTrade", {"tradeId": i})

        assert [p["tradeId"] for p in sink.received] == [1, 2]

    def test_closed_sink_fails(self):
        sink = MemoryTradeSink("client")
        sink.close()

        assert sink.broadcast("ReceiveTrade", PAYLOAD).status == DeliveryStatus.FAILED
        assert sink.health_check() is False


class TestStdoutTradeSink:
    """Test StdoutTradeSink class."""

    def test_json_format(self, capsys):
        sink = StdoutTradeSink("stdout", StdoutSinkConfig(include_timestamp=False))

        result = sink.broadcast("ReceiveTrade", PAYLOAD)

        assert result.status == DeliveryStatus.SUCCESS
        printed = json.loads(capsys.readouterr().out)
        assert printed == {"event": "ReceiveTrade", "data": PAYLOAD}

    def test_pretty_format(self, capsys):
        sink = StdoutTradeSink("stdout", StdoutSinkConfig(format="pretty"))

        sink.broadcast("ReceiveTrade", PAYLOAD)

        out = capsys.readouterr().out
        assert "ReceiveTrade: #7 TCS 1 @ 2500" in out


class TestHttpTradeSink:
    """Test HttpTradeSink class."""

    def setup_method(self):
        self.sink = HttpTradeSink("webhook", HttpSinkConfig(url="http://example.test/hook", timeout_seconds=2))

    def test_invalid_url_rejected(self):
        with pytest.raises(SinkPermanentError):
            HttpTradeSink("bad", HttpSinkConfig(url="not-a-url"))

    @patch("tradeagg_app.delivery.http_sink.urlopen")
    def test_successful_post(self, mock_urlopen):
        mock_urlopen.return_value = mock_response(200)

        result = self.sink.broadcast("ReceiveTrade", PAYLOAD)

        assert result.status == DeliveryStatus.SUCCESS
        request = mock_urlopen.call_args[0][0]
        assert json.loads(request.data) == {"event": "ReceiveTrade", "data": PAYLOAD}
        assert mock_urlopen.call_args[1]["timeout"] == 2

    @patch("tradeagg_app.delivery.http_sink.urlopen")
    def test_server_error_is_retryable(self, mock_urlopen):
        mock_urlopen.side_effect = HTTPError("http://example.test/hook", 503, "Unavailable", {}, None)

        with pytest.raises(SinkRetryableError):
            self.sink.broadcast("ReceiveTrade", PAYLOAD)

    @patch("tradeagg_app.delivery.http_sink.urlopen")
    def test_client_error_is_permanent(self, mock_urlopen):
        mock_urlopen.side_effect = HTTPError("http://example.test/hook", 404, "Not Found", {}, None)

        with pytest.raises(SinkPermanentError):
            self.sink.broadcast("ReceiveTrade", PAYLOAD)

    @patch("tradeagg_app.delivery.http_sink.urlopen")
    def test_network_error_is_retryable(self, mock_urlopen):
        mock_urlopen.side_effect = URLError("connection refused")

        with pytest.raises(SinkRetryableError):
            self.sink.broadcast("ReceiveTrade", PAYLOAD)

    @patch("tradeagg_app.delivery.base.time.sleep")
    @patch("tradeagg_app.delivery.http_sink.urlopen")
    def test_retry_until_dead_letter(self, mock_urlopen, mock_sleep):
        mock_urlopen.side_effect = URLError("connection refused")

        result = self.sink.broadcast_with_retry("ReceiveTrade", PAYLOAD, max_retries=2, retry_delay=1)

        assert result.status == DeliveryStatus.DEAD_LETTER
        assert result.attempt_count == 3
        assert mock_urlopen.call_count == 3
        assert mock_sleep.call_count == 2
        assert self.sink.get_stats()["error_count"] == 1

    @patch("tradeagg_app.delivery.http_sink.urlopen")
    def test_permanent_error_not_retried(self, mock_urlopen):
        mock_urlopen.side_effect = HTTPError("http://example.test/hook", 400, "Bad Request", {}, None)

        result = self.sink.broadcast_with_retry("ReceiveTrade", PAYLOAD, max_retries=3, retry_delay=0)

        assert result.status == DeliveryStatus.FAILED
        assert result.attempt_count == 1
        assert mock_urlopen.call_count == 1


class TestCreateSink:
    """Test sink construction from configured destinations."""

    def test_http_sink_inherits_send_timeout(self):
        from tradeagg_app.config.sinks import create_http_destination
        from tradeagg_app.delivery.factory import create_sink

        sink = create_sink(create_http_destination("hook", "http://localhost/hook"), send_timeout=1.25)

        assert isinstance(sink, HttpTradeSink)
        assert sink.timeout == 1.25

    def test_explicit_timeout_kept(self):
        from tradeagg_app.config.sinks import create_http_destination
        from tradeagg_app.delivery.factory import create_sink

        destination = create_http_destination("hook", "http://localhost/hook", timeout_seconds=3)

        assert create_sink(destination, send_timeout=1.25).timeout == 3

    def test_memory_destination(self):
        from tradeagg_app.config.sinks import SinkDestination, SinkMethod
        from tradeagg_app.delivery.factory import create_sink

        sink = create_sink(SinkDestination("mem", SinkMethod.MEMORY, MemorySinkConfig()))

        assert isinstance(sink, MemoryTradeSink)
