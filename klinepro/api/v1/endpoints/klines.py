"""
Kline API Endpoints

Proxies Binance klines as validated Bars.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from klinepro.api.deps import get_binance_client
from klinepro.schemas.market import Interval, KlineResponse
from klinepro.services.base import RateLimitError, RemoteServiceError
from klinepro.services.market_data.binance import BinanceClient, MAX_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=KlineResponse)
async def get_klines(
    symbol: str = Query(..., min_length=1, description="Trading pair, e.g. BTCUSDT"),
    interval: Interval = Query(Interval.H1),
    limit: int = Query(500, ge=1, le=MAX_LIMIT),
    client: BinanceClient = Depends(get_binance_client),
):
    """Get klines for a symbol from Binance, oldest first."""
    symbol = symbol.upper().strip()
    try:
        bars = await client.fetch_klines(symbol, interval, limit)
    except RateLimitError as e:
        raise HTTPException(status_code=429, detail=e.message)
    except RemoteServiceError as e:
        raise HTTPException(status_code=502, detail=e.message)

    return KlineResponse(symbol=symbol, interval=interval, bars=bars)
