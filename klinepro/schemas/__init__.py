"""
KlinePro Schema Contracts

This module defines all JSON contracts between system components.
"""

from klinepro.schemas.market import (
    Interval,
    Bar,
    KlineResponse,
)
from klinepro.schemas.indicators import (
    IndicatorConfig,
    IndicatorRequest,
    IndicatorReport,
    IndicatorSeries,
    IndicatorSnapshot,
    IndicatorSignal,
    SignalType,
)
from klinepro.schemas.analysis import (
    TradeAction,
    TradeOpinion,
    ChunkAnalysis,
    AnalysisReport,
)

__all__ = [
    # Market
    "Interval",
    "Bar",
    "KlineResponse",
    # Indicators
    "IndicatorConfig",
    "IndicatorRequest",
    "IndicatorReport",
    "IndicatorSeries",
    "IndicatorSnapshot",
    "IndicatorSignal",
    "SignalType",
    # Analysis
    "TradeAction",
    "TradeOpinion",
    "ChunkAnalysis",
    "AnalysisReport",
]
