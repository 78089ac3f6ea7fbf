"""
CONTRACT 3: Trade Opinion

Input: IndicatorReport (one chunk of bars)
Output: TradeOpinion

The model interprets indicator values. It does NO math - all numbers
come from the Indicator Engine.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class TradeOpinion(BaseModel):
    """Structured opinion returned by the summarization model."""

    probability_up: float = Field(..., ge=0, le=1)
    probability_down: float = Field(..., ge=0, le=1)
    action: TradeAction
    entry_price: Optional[float] = Field(default=None, gt=0)
    reason: Optional[str] = None

    @field_validator("probability_up", "probability_down", mode="before")
    @classmethod
    def _normalize_percent(cls, v):
        # Models sometimes answer 65 instead of 0.65
        if isinstance(v, str):
            v = float(v.strip().rstrip("%"))
        if isinstance(v, (int, float)) and 1 < v <= 100:
            return v / 100
        return v

    @field_validator("action", mode="before")
    @classmethod
    def _normalize_action(cls, v):
        if isinstance(v, str):
            v = v.strip().upper()
            return {"LONG": "BUY", "SHORT": "SELL", "NEUTRAL": "HOLD"}.get(v, v)
        return v

    @field_validator("entry_price", mode="before")
    @classmethod
    def _empty_price(cls, v):
        if v in ("", 0, None):
            return None
        return v


class ChunkAnalysis(BaseModel):
    """Opinion for one fixed-size chunk of bars."""

    chunk_index: int = Field(..., ge=0)
    first_open_time: int
    last_open_time: int
    bar_count: int = Field(..., ge=1)
    opinion: TradeOpinion


class AnalysisReport(BaseModel):
    """Per-chunk opinions, in the caller's chunk order."""

    table: Optional[str] = None
    chunk_size: int = Field(..., ge=1)
    total_bars: int = Field(..., ge=0)
    chunks: list[ChunkAnalysis]
