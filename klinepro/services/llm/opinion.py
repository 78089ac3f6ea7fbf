"""
Trade Opinion Service Implementation

Sends indicator reports to the LLM and validates the JSON it returns.

CRITICAL: LLM does NO math. All numbers come from Indicator Engine.
"""

import asyncio
import json
import logging
from typing import Optional, Sequence

from pydantic import ValidationError

from klinepro.schemas.analysis import AnalysisReport, ChunkAnalysis, TradeOpinion
from klinepro.schemas.indicators import IndicatorConfig, IndicatorReport, IndicatorSnapshot
from klinepro.schemas.market import Bar
from klinepro.services.base import InvalidInputError, RemoteServiceError
from klinepro.services.indicators.calculations import OHLCVData
from klinepro.services.indicators.service import build_snapshot, compute_indicators
from klinepro.services.llm.client import LLMClient, get_llm_client
from klinepro.services.llm.interface import TradeOpinionServiceInterface
from klinepro.services.llm.prompts import OPINION_SYSTEM_PROMPT, format_opinion_prompt

logger = logging.getLogger(__name__)

SERVICE_NAME = "TradeOpinionService"


def chunk_bars(bars: Sequence[Bar], size: int) -> list[list[Bar]]:
    """
    Split bars into consecutive chunks of `size`.

    The last chunk may be shorter.
    """
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise InvalidInputError(f"chunk size must be a positive integer, got {size!r}")
    return [list(bars[i:i + size]) for i in range(0, len(bars), size)]


def parse_trade_opinion(content: str) -> TradeOpinion:
    """Parse model output into a TradeOpinion."""
    text = content.strip()
    if text.startswith("```"):
        # Remove markdown code block
        lines = text.split("\n")
        if lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        text = "\n".join(lines[1:])

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse LLM response: {e}")
        logger.error(f"Response content: {content[:500]}")
        raise RemoteServiceError(SERVICE_NAME, "LLM returned invalid JSON") from e

    if not isinstance(payload, dict):
        raise RemoteServiceError(SERVICE_NAME, "LLM returned JSON that is not an object")

    try:
        return TradeOpinion.model_validate(payload)
    except ValidationError as e:
        logger.error(f"LLM opinion failed validation: {e}")
        raise RemoteServiceError(
            SERVICE_NAME,
            "LLM opinion failed validation",
            details={"errors": e.errors(include_url=False)},
        ) from e


class TradeOpinionService(TradeOpinionServiceInterface):
    """
    Trade Opinion Service using LLM.

    One request per indicator report. Chunked analysis runs requests
    concurrently, bounded by max_concurrency.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        max_concurrency: int = 4,
    ):
        if max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")
        self._llm_client = llm_client
        self.max_concurrency = max_concurrency

    @property
    def llm_client(self) -> LLMClient:
        """Lazy initialization of LLM client."""
        if self._llm_client is None:
            self._llm_client = get_llm_client()
        return self._llm_client

    async def execute(
        self,
        input_data: IndicatorReport,
        snapshot: Optional[IndicatorSnapshot] = None,
    ) -> TradeOpinion:
        """Get a trade opinion for one indicator report."""
        user_prompt = format_opinion_prompt(input_data, snapshot)

        response = await self.llm_client.generate(
            system_prompt=OPINION_SYSTEM_PROMPT,
            user_prompt=user_prompt,
            response_format="json",
        )
        logger.debug(f"Opinion from {response.model}: {response.usage}")

        return parse_trade_opinion(response.content)

    async def _analyze_chunk(
        self,
        index: int,
        chunk: list[Bar],
        config: Optional[IndicatorConfig],
        semaphore: asyncio.Semaphore,
    ) -> ChunkAnalysis:
        data = OHLCVData.from_bars(chunk)
        report = compute_indicators(data, config)
        snapshot = build_snapshot(report, data)

        async with semaphore:
            logger.info(f"Analyzing chunk {index} ({len(chunk)} bars)")
            opinion = await self.execute(report, snapshot)

        return ChunkAnalysis(
            chunk_index=index,
            first_open_time=chunk[0].open_time,
            last_open_time=chunk[-1].open_time,
            bar_count=len(chunk),
            opinion=opinion,
        )

    async def analyze_chunks(
        self,
        bars: Sequence[Bar],
        chunk_size: int,
        config: Optional[IndicatorConfig] = None,
        table: Optional[str] = None,
    ) -> AnalysisReport:
        """
        Get one opinion per fixed-size chunk of bars.

        Chunks are requested concurrently; results keep chunk order.
        The first failing chunk fails the whole analysis and cancels the
        requests still pending.
        """
        chunks = chunk_bars(bars, chunk_size)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        tasks = [
            asyncio.create_task(self._analyze_chunk(i, chunk, config, semaphore))
            for i, chunk in enumerate(chunks)
        ]
        try:
            results = await asyncio.gather(*tasks)
        except (Exception, asyncio.CancelledError):
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                logger.warning(f"Chunk analysis failed, cancelled {len(pending)} pending chunks")
                await asyncio.gather(*pending, return_exceptions=True)
            raise

        return AnalysisReport(
            table=table,
            chunk_size=chunk_size,
            total_bars=len(bars),
            chunks=list(results),
        )

    async def health_check(self) -> bool:
        """Check LLM API connectivity."""
        return await self.llm_client.health_check()


# Singleton instance
_service_instance: Optional[TradeOpinionService] = None


def get_trade_opinion_service() -> TradeOpinionService:
    """Get or create trade opinion service instance."""
    global _service_instance
    if _service_instance is None:
        from klinepro.core.config import settings

        _service_instance = TradeOpinionService(max_concurrency=settings.llm_max_concurrency)
    return _service_instance
