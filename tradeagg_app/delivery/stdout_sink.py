"""Standard output trade sink."""

import json
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from ..config.sinks import StdoutSinkConfig
from .base import BaseTradeSink, DeliveryResult, DeliveryStatus


class StdoutTradeSink(BaseTradeSink):
    """Prints every received trade to stdout."""

    def __init__(self, name: str, config: Optional[StdoutSinkConfig] = None):
        super().__init__(name, config or StdoutSinkConfig())
        self.config: StdoutSinkConfig

    def broadcast(self, event_name: str, payload: dict[str, Any]) -> DeliveryResult:
        """Write the event to stdout."""
        try:
            print(self._format_event(event_name, payload), file=sys.stdout, flush=True)
        except (OSError, ValueError) as e:
            self.logger.error(
                "Failed to print trade to stdout",
                sink_name=self.name,
                trade_id=payload.get("tradeId"),
                error=str(e)
            )
            return DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"Stdout error: {str(e)}",
                error=e
            )

        return DeliveryResult(status=DeliveryStatus.SUCCESS, message="Printed to stdout")

    def _format_event(self, event_name: str, payload: dict[str, Any]) -> str:
        if self.config.format == "pretty":
            output = (
                f"[{datetime.now(timezone.utc).isoformat()}] {event_name}: "
                f"#{payload.get('tradeId')} {payload.get('tickerSymbol')} "
                f"{payload.get('quantity')} @ {payload.get('price')}"
            )
            return output

        event = {"event": event_name, "data": payload}
        if self.config.include_timestamp:
            event["stdout_timestamp"] = datetime.now(timezone.utc).isoformat()
        return json.dumps(event)

    def health_check(self) -> bool:
        """Check if stdout is available."""
        try:
            return sys.stdout.writable()
        except (OSError, ValueError):
            return False
