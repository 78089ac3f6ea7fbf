"""
Indicator Engine Service

CONTRACT:
    Input:  IndicatorRequest (OHLCV bars + IndicatorConfig)
    Output: IndicatorReport

RESPONSIBILITIES:
    - Moving averages (SMA, EMA)
    - Oscillators (RSI, MACD, Stochastic, Williams %R, CCI)
    - Volatility (ATR, Bollinger Bands) and trend strength (ADX)
    - Volume accumulation (OBV)
    - Latest-value snapshot with rule-based signals

PURE PYTHON - No LLM involvement.
Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from klinepro.services.indicators.interface import IndicatorServiceInterface
from klinepro.services.indicators.service import (
    IndicatorService,
    build_snapshot,
    compute_indicators,
    get_indicator_service,
)

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "build_snapshot",
    "compute_indicators",
    "get_indicator_service",
]
