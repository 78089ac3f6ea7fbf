"""
CONTRACT 2: Indicator Engine

Input: IndicatorRequest (bars + IndicatorConfig)
Output: IndicatorReport / IndicatorSnapshot

Every series carries an `offset`: the index of the source bar its first
value belongs to. Value j of a series is aligned to bar `offset + j`.
"""

import math
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from klinepro.schemas.market import Bar, check_time_order


# =============================================================================
# ENUMS
# =============================================================================


class SignalType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    NEUTRAL = "NEUTRAL"


class RSILevel(str, Enum):
    OVERBOUGHT = "OVERBOUGHT"
    STRONG = "STRONG"
    NEUTRAL = "NEUTRAL"
    WEAK = "WEAK"
    OVERSOLD = "OVERSOLD"


class TrendStrength(str, Enum):
    VERY_STRONG = "VERY_STRONG"
    STRONG = "STRONG"
    TRENDING = "TRENDING"
    WEAK = "WEAK"


# =============================================================================
# INPUT: IndicatorConfig
# =============================================================================


class MACDConfig(BaseModel):
    fast: int = Field(default=12, gt=0)
    slow: int = Field(default=26, gt=0)
    signal: int = Field(default=9, gt=0)


class BollingerConfig(BaseModel):
    period: int = Field(default=20, gt=0)
    std_dev_multiplier: float = Field(default=2.0, ge=0)

    @field_validator("std_dev_multiplier")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("std_dev_multiplier must be finite")
        return v


class StochasticConfig(BaseModel):
    k_period: int = Field(default=14, gt=0)
    d_period: int = Field(default=3, gt=0)


class IndicatorConfig(BaseModel):
    """Indicator periods. Unspecified options take the defaults."""

    sma_period: int = Field(default=20, gt=0)
    ema_period: int = Field(default=20, gt=0)
    rsi_period: int = Field(default=14, gt=0)
    macd: MACDConfig = Field(default_factory=MACDConfig)
    bollinger: BollingerConfig = Field(default_factory=BollingerConfig)
    stochastic: StochasticConfig = Field(default_factory=StochasticConfig)
    atr_period: int = Field(default=14, gt=0)
    adx_period: int = Field(default=14, gt=0)
    williams_r_period: int = Field(default=14, gt=0)
    cci_period: int = Field(default=20, gt=0)


class IndicatorRequest(BaseModel):
    """
    Request for indicator calculation.
    Sent by: API
    Received by: Indicator Service
    """

    bars: list[Bar] = Field(..., description="Bars in ascending open_time order")
    config: IndicatorConfig = Field(default_factory=IndicatorConfig)

    @field_validator("bars")
    @classmethod
    def _ordered(cls, v: list[Bar]) -> list[Bar]:
        return check_time_order(v)


# =============================================================================
# OUTPUT: Aligned series
# =============================================================================


class IndicatorSeries(BaseModel):
    """Single scalar per bar."""

    offset: int = Field(..., ge=0)
    values: list[float]


class MACDSeries(BaseModel):
    offset: int = Field(..., ge=0)
    macd_line: list[float]
    signal_line: list[float]
    histogram: list[float]


class BollingerSeries(BaseModel):
    offset: int = Field(..., ge=0)
    upper: list[float]
    middle: list[float]
    lower: list[float]
    bandwidth: list[float]
    percent_b: list[float]


class StochasticSeries(BaseModel):
    offset: int = Field(..., ge=0)
    k: list[float]
    d: list[float]


class ADXSeries(BaseModel):
    offset: int = Field(..., ge=0)
    adx: list[float]
    plus_di: list[float]
    minus_di: list[float]


class IndicatorReport(BaseModel):
    """
    Complete indicator output for one series.
    Returned by: Indicator Service
    Consumed by: Trade Opinion Service, API clients
    """

    bar_count: int = Field(..., ge=0)
    config: IndicatorConfig
    sma: IndicatorSeries
    ema: IndicatorSeries
    rsi: IndicatorSeries
    macd: MACDSeries
    bollinger: BollingerSeries
    stochastic: StochasticSeries
    atr: IndicatorSeries
    adx: ADXSeries
    obv: IndicatorSeries
    williams_r: IndicatorSeries
    cci: IndicatorSeries


# =============================================================================
# OUTPUT: Latest values
# =============================================================================


class MACDData(BaseModel):
    """MACD indicator values."""

    macd_line: float
    signal_line: float
    histogram: float


class StochasticData(BaseModel):
    """Stochastic oscillator values."""

    k: float = Field(..., ge=0, le=100)
    d: float = Field(..., ge=0, le=100)


class BollingerBandsData(BaseModel):
    """Bollinger Bands values."""

    upper: float
    middle: float
    lower: float
    bandwidth: float = Field(..., description="Band width as ratio of the middle band")
    percent_b: float = Field(..., description="Price position within bands (0-1)")


class ADXData(BaseModel):
    adx: float
    plus_di: float
    minus_di: float


class IndicatorSignal(BaseModel):
    """Signal generated by an indicator."""

    indicator: str
    signal: SignalType
    description: str


class IndicatorSnapshot(BaseModel):
    """
    Latest value of every indicator.

    Indicators without enough history are None, except RSI which falls back
    to the neutral 50.
    """

    open_time: Optional[int] = None
    close: Optional[float] = None
    sma: Optional[float] = None
    ema: Optional[float] = None
    rsi: float = Field(default=50.0, ge=0, le=100)
    rsi_level: RSILevel = RSILevel.NEUTRAL
    macd: Optional[MACDData] = None
    bollinger: Optional[BollingerBandsData] = None
    stochastic: Optional[StochasticData] = None
    atr: Optional[float] = None
    adx: Optional[ADXData] = None
    adx_strength: Optional[TrendStrength] = None
    obv: Optional[float] = None
    williams_r: Optional[float] = Field(default=None, ge=-100, le=0)
    cci: Optional[float] = None
    signals: list[IndicatorSignal] = Field(default_factory=list)
