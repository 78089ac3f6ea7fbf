"""
Binance Market Data Adapter

Fetches public kline (candlestick) data from the Binance REST API and
normalizes it into Bars. No API key required.
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp
from pydantic import ValidationError

from klinepro.core.config import settings
from klinepro.schemas.market import Bar, Interval
from klinepro.services.base import RateLimitError, RemoteServiceError

logger = logging.getLogger(__name__)

SERVICE_NAME = "Binance"
KLINES_PATH = "/api/v3/klines"
MAX_LIMIT = 1000

# 418 is Binance's IP ban after ignored 429s
RATE_LIMIT_STATUSES = (418, 429)


def parse_kline(row: list[Any]) -> Bar:
    """
    Convert one Binance kline array to a Bar.

    Binance kline format:
    [open_time, open, high, low, close, volume, close_time, quote_volume,
     trade_count, taker_buy_volume, taker_buy_quote_volume, ignore]
    Prices and volumes arrive as strings.
    """
    if not isinstance(row, (list, tuple)) or len(row) < 6:
        raise RemoteServiceError(SERVICE_NAME, f"Malformed kline row: {row!r}")

    def opt(index: int, cast):
        return cast(row[index]) if len(row) > index and row[index] is not None else None

    try:
        return Bar(
            open_time=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
            close_time=opt(6, int),
            quote_volume=opt(7, float),
            trade_count=opt(8, int),
            taker_buy_volume=opt(9, float),
            taker_buy_quote_volume=opt(10, float),
        )
    except (TypeError, ValueError, ValidationError) as e:
        raise RemoteServiceError(SERVICE_NAME, f"Malformed kline row: {row!r}") from e


class BinanceClient:
    """
    Async Binance REST client.

    Owns its aiohttp session unless one is injected.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = (base_url or settings.binance_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.binance_timeout
        self._session = session
        self._owns_session = session is None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={"Accept": "application/json"},
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if we created it."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def fetch_klines(
        self,
        symbol: str,
        interval: Interval = Interval.H1,
        limit: int = 500,
    ) -> list[Bar]:
        """
        Fetch klines for a symbol, oldest first.

        Raises:
            ValueError: limit outside 1..1000
            RateLimitError: Binance throttled the request
            RemoteServiceError: any other failure
        """
        if not 1 <= limit <= MAX_LIMIT:
            raise ValueError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")

        symbol = symbol.upper().strip()
        params = {"symbol": symbol, "interval": Interval(interval).value, "limit": limit}
        url = f"{self.base_url}{KLINES_PATH}"

        logger.info(f"Fetching {symbol} {params['interval']} klines from Binance...")

        try:
            session = await self._ensure_session()
            async with session.get(url, params=params) as resp:
                if resp.status in RATE_LIMIT_STATUSES:
                    retry_after = resp.headers.get("Retry-After")
                    raise RateLimitError(
                        SERVICE_NAME,
                        f"Rate limited (HTTP {resp.status})",
                        {"retry_after": retry_after},
                    )

                payload = await resp.json(content_type=None)

                if resp.status != 200:
                    msg = payload.get("msg") if isinstance(payload, dict) else None
                    logger.error(f"Binance klines error for {symbol}: HTTP {resp.status} {msg}")
                    raise RemoteServiceError(
                        SERVICE_NAME,
                        msg or f"HTTP {resp.status}",
                        {"status": resp.status, "code": _error_code(payload)},
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Binance request failed for {symbol}: {e}")
            raise RemoteServiceError(SERVICE_NAME, f"Request failed: {e}") from e

        if isinstance(payload, dict):
            # Error payloads can come back with 200 from some proxies
            raise RemoteServiceError(
                SERVICE_NAME,
                payload.get("msg", "Unexpected response"),
                {"code": _error_code(payload)},
            )
        if not isinstance(payload, list):
            raise RemoteServiceError(SERVICE_NAME, "Unexpected response format")

        bars = [parse_kline(row) for row in payload]
        logger.debug(f"Fetched {len(bars)} klines for {symbol}")
        return bars

    async def health_check(self) -> bool:
        """Ping the exchange."""
        try:
            session = await self._ensure_session()
            async with session.get(f"{self.base_url}/api/v3/ping") as resp:
                return resp.status == 200
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Binance health check failed: {e}")
            return False


def _error_code(payload: Any) -> Optional[int]:
    return payload.get("code") if isinstance(payload, dict) else None
