"""
Indicator Engine Service Interface

Defines the contract for the indicator calculation layer.
"""

from abc import abstractmethod

from klinepro.services.base import BaseService
from klinepro.schemas.indicators import (
    IndicatorRequest,
    IndicatorReport,
    IndicatorSnapshot,
)


class IndicatorServiceInterface(BaseService[IndicatorRequest, IndicatorReport]):
    """
    Indicator Engine Service Contract.

    INPUT: IndicatorRequest
        - bars: OHLCV bars in ascending open_time order
        - config: indicator periods (defaults for anything unspecified)

    OUTPUT: IndicatorReport
        - one aligned series per indicator, each with its source offset
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    async def execute(self, input_data: IndicatorRequest) -> IndicatorReport:
        """Calculate every indicator for the request's bars."""
        pass

    @abstractmethod
    async def snapshot(self, input_data: IndicatorRequest) -> IndicatorSnapshot:
        """Latest indicator values plus rule-based signals."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        pass
