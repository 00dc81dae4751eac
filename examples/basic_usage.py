#!/usr/bin/env python3
"""
Basic Usage Example - Trade Aggregation Engine

This script demonstrates:
- Creating the engine at startup
- Subscribing a live client and a stdout sink
- Submitting trades through the API handlers
- Querying single and bulk average prices

Run: python examples/basic_usage.py
"""

from tradeagg_app.api.handlers import TradeApi
from tradeagg_app.config.defaults import get_default_config
from tradeagg_app.config.sinks import StdoutSinkConfig
from tradeagg_app.delivery.memory_sink import MemoryTradeSink
from tradeagg_app.delivery.stdout_sink import StdoutTradeSink
from tradeagg_app.engine import TradeAggregationEngine

SAMPLE_TRADES = [
    {"tickerSymbol": "TCS", "price": "2450", "quantity": "10", "brokerId": "BRK-001"},
    {"tickerSymbol": "TCS", "price": "2550", "quantity": "5", "brokerId": "BRK-002"},
    {"tickerSymbol": "SBI", "price": "560", "quantity": "100", "brokerId": "BRK-001"},
    {"tickerSymbol": "IRB", "price": "120", "quantity": "40", "brokerId": "BRK-003"},
    {"tickerSymbol": "IRB", "price": "-1", "quantity": "40", "brokerId": "BRK-003"},
]


def main():
    config = get_default_config()

    with TradeAggregationEngine(config=config, configure_logs=True) as engine:
        api = TradeApi(engine)
        client = MemoryTradeSink("dashboard")
        engine.subscribe(client)
        engine.subscribe(StdoutTradeSink("console", StdoutSinkConfig(format="pretty")))

        print("📥 Submitting trades...")
        for payload in SAMPLE_TRADES:
            response = api.submit_trade(payload)
            print(f"  {payload['tickerSymbol']} @ {payload['price']} -> {response.status} {response.body}")

        engine.wait_idle(5.0)

        print("\n📊 Average prices")
        print(f"  TCS: {api.get_price('TCS').body}")
        print(f"  XYZ: {api.get_price('XYZ').status}")
        print(f"  TCS,SBI: {api.get_prices('TCS,SBI').body}")
        print(f"  all: {api.get_prices().body}")

        print(f"\n📡 dashboard received {len(client.received)} notifications")


if __name__ == "__main__":
    main()
