"""
Analysis API Endpoints

LLM trade opinions over indicator reports.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from klinepro.api.deps import get_opinion_service, get_store
from klinepro.core.config import settings
from klinepro.db.store import KlineStore, TableNotFoundError
from klinepro.schemas.analysis import AnalysisReport, TradeOpinion
from klinepro.schemas.indicators import IndicatorRequest
from klinepro.services.base import InvalidInputError, RateLimitError, RemoteServiceError
from klinepro.services.indicators.calculations import OHLCVData
from klinepro.services.indicators.service import build_snapshot, compute_indicators
from klinepro.services.llm.opinion import TradeOpinionService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/opinion", response_model=TradeOpinion)
async def get_opinion(
    request: IndicatorRequest,
    service: TradeOpinionService = Depends(get_opinion_service),
):
    """Compute indicators for the posted bars and ask the model for an opinion."""
    try:
        data = OHLCVData.from_bars(request.bars)
        report = compute_indicators(data, request.config)
        return await service.execute(report, build_snapshot(report, data))
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except RateLimitError as e:
        raise HTTPException(status_code=429, detail=e.message)
    except RemoteServiceError as e:
        raise HTTPException(status_code=502, detail=e.message)


@router.post("/local/{table_name}", response_model=AnalysisReport)
async def analyze_local_table(
    table_name: str,
    offset: int = Query(1, ge=1, description="Number of chunks to analyze"),
    store: KlineStore = Depends(get_store),
    service: TradeOpinionService = Depends(get_opinion_service),
):
    """
    Analyze the most recent `offset` chunks of a local kline table.

    Loads chunk_size * offset bars and returns one opinion per chunk.
    """
    chunk_size = settings.analysis_chunk_size
    try:
        bars = await store.load_bars(table_name, chunk_size * offset)
        logger.info(f"Analyzing {len(bars)} bars from {table_name} in chunks of {chunk_size}")
        return await service.analyze_chunks(bars, chunk_size, table=table_name)
    except TableNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RateLimitError as e:
        raise HTTPException(status_code=429, detail=e.message)
    except RemoteServiceError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
