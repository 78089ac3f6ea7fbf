"""
Market Data Service

Fetches exchange klines (Binance) and normalizes them into Bars.
"""

from klinepro.services.market_data.binance import BinanceClient, parse_kline

__all__ = [
    "BinanceClient",
    "parse_kline",
]
