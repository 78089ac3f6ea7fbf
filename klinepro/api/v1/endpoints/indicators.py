"""
Indicator API Endpoints

Endpoints for technical indicator calculations.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from klinepro.api.deps import get_binance_client, get_store
from klinepro.db.store import KlineStore, TableNotFoundError
from klinepro.schemas.indicators import IndicatorReport, IndicatorRequest, IndicatorSnapshot
from klinepro.schemas.market import Interval
from klinepro.services.base import InvalidInputError, RateLimitError, RemoteServiceError
from klinepro.services.indicators import get_indicator_service
from klinepro.services.market_data.binance import BinanceClient, MAX_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=IndicatorReport)
async def calculate_indicators(request: IndicatorRequest):
    """
    Calculate every indicator for the posted bars.

    Each series is trimmed to its valid values; `offset` is the index of
    the bar its first value belongs to.
    """
    try:
        return await get_indicator_service().execute(request)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.post("/snapshot", response_model=IndicatorSnapshot)
async def calculate_snapshot(request: IndicatorRequest):
    """Latest value of every indicator plus rule-based signals."""
    try:
        return await get_indicator_service().snapshot(request)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message)


@router.get("/binance/{symbol}", response_model=IndicatorSnapshot)
async def get_binance_snapshot(
    symbol: str,
    interval: Interval = Query(Interval.H1),
    limit: int = Query(500, ge=1, le=MAX_LIMIT),
    client: BinanceClient = Depends(get_binance_client),
):
    """Fetch klines from Binance and return the indicator snapshot."""
    try:
        bars = await client.fetch_klines(symbol, interval, limit)
        return await get_indicator_service().snapshot(IndicatorRequest(bars=bars))
    except RateLimitError as e:
        raise HTTPException(status_code=429, detail=e.message)
    except RemoteServiceError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except ValueError as e:
        # Feed bars out of order or duplicated
        logger.error(f"Invalid klines from Binance for {symbol}: {e}")
        raise HTTPException(status_code=502, detail=f"Invalid klines from Binance: {e}")


@router.get("/local/{table_name}", response_model=IndicatorReport)
async def get_local_indicators(
    table_name: str,
    limit: Optional[int] = Query(None, ge=1, description="Most recent N bars; all when omitted"),
    store: KlineStore = Depends(get_store),
):
    """Calculate indicators for bars stored in a local kline table."""
    try:
        bars = await store.load_bars(table_name, limit)
        return await get_indicator_service().execute(IndicatorRequest(bars=bars))
    except TableNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        # Bad table name or structurally invalid stored data
        raise HTTPException(status_code=400, detail=str(e))
