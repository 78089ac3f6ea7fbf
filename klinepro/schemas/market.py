"""
CONTRACT 1: Market Data

Input: symbol, interval, limit
Output: list[Bar]

Bars are the single input shape of the Indicator Engine. Binance kline
arrays and local kline-store rows are normalized into this format.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class Interval(str, Enum):
    """Binance kline intervals."""

    S1 = "1s"
    M1 = "1m"
    M3 = "3m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H2 = "2h"
    H4 = "4h"
    H6 = "6h"
    H8 = "8h"
    H12 = "12h"
    D1 = "1d"
    D3 = "3d"
    W1 = "1w"
    MO1 = "1M"


# =============================================================================
# BAR
# =============================================================================


class Bar(BaseModel):
    """Single OHLCV candlestick."""

    open_time: int = Field(..., description="Open time, epoch milliseconds")
    open: float
    high: float
    low: float
    close: float
    volume: float = Field(..., ge=0)

    # Binance extras (absent for bars supplied by callers)
    close_time: Optional[int] = None
    quote_volume: Optional[float] = None
    trade_count: Optional[int] = None
    taker_buy_volume: Optional[float] = None
    taker_buy_quote_volume: Optional[float] = None

    @model_validator(mode="after")
    def _check_price_range(self) -> "Bar":
        if self.high < self.low:
            raise ValueError("high must be >= low")
        if self.high < max(self.open, self.close):
            raise ValueError("high must be >= max(open, close)")
        if self.low > min(self.open, self.close):
            raise ValueError("low must be <= min(open, close)")
        return self


def check_time_order(bars: list[Bar]) -> list[Bar]:
    """Reject series whose open_time is not strictly increasing."""
    for prev, curr in zip(bars, bars[1:]):
        if curr.open_time <= prev.open_time:
            raise ValueError(
                f"bars must be strictly increasing in open_time "
                f"({prev.open_time} followed by {curr.open_time})"
            )
    return bars


# =============================================================================
# RESPONSE
# =============================================================================


class KlineResponse(BaseModel):
    """Normalized klines for one symbol."""

    symbol: str
    interval: Interval
    bars: list[Bar]
