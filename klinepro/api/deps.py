"""
API dependencies.

Shared clients live on app.state; they are built in the lifespan
handler and can be swapped with dependency_overrides in tests.
"""

from fastapi import Request

from klinepro.db.store import KlineStore
from klinepro.services.llm.opinion import TradeOpinionService
from klinepro.services.market_data.binance import BinanceClient


def get_store(request: Request) -> KlineStore:
    return request.app.state.store


def get_binance_client(request: Request) -> BinanceClient:
    return request.app.state.binance


def get_opinion_service(request: Request) -> TradeOpinionService:
    return request.app.state.opinion_service
