"""
LLM Service Interfaces

Defines the contract for the trade opinion layer.
"""

from abc import abstractmethod
from typing import Optional, Sequence

from klinepro.services.base import BaseService
from klinepro.schemas.analysis import AnalysisReport, TradeOpinion
from klinepro.schemas.indicators import IndicatorConfig, IndicatorReport, IndicatorSnapshot
from klinepro.schemas.market import Bar


class TradeOpinionServiceInterface(BaseService[IndicatorReport, TradeOpinion]):
    """
    Trade Opinion Service Contract.

    INPUT: IndicatorReport
        - every indicator series for one window of bars
        - optionally the latest-value snapshot of the same window

    OUTPUT: TradeOpinion
        - probability_up / probability_down (0..1)
        - action: BUY / SELL / HOLD
        - entry_price, reason

    RULES:
        - NEVER do math - all numbers are from the report
        - Model output is validated before it is returned
    """

    @property
    def name(self) -> str:
        return "TradeOpinionService"

    @abstractmethod
    async def execute(
        self,
        input_data: IndicatorReport,
        snapshot: Optional[IndicatorSnapshot] = None,
    ) -> TradeOpinion:
        """Ask the model for an opinion on one report."""
        pass

    @abstractmethod
    async def analyze_chunks(
        self,
        bars: Sequence[Bar],
        chunk_size: int,
        config: Optional[IndicatorConfig] = None,
        table: Optional[str] = None,
    ) -> AnalysisReport:
        """Split bars into chunks and collect one opinion per chunk."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check LLM API connectivity."""
        pass
