"""
TradeAgg App - Trade Aggregation Engine

Records trade executions and maintains a running average trade price per
ticker symbol. Accepted trades are pushed to live subscribers as they arrive.
"""

__version__ = "0.1.0"
__author__ = "TradeAgg Team"
