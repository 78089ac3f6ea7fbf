"""
API v1 Router

All API endpoints.
"""

from fastapi import APIRouter

from klinepro.api.v1.endpoints import klines, indicators, analysis

router = APIRouter()

# Include all endpoint routers
router.include_router(klines.router, prefix="/klines", tags=["Market Data"])
router.include_router(indicators.router, prefix="/indicators", tags=["Indicators"])
router.include_router(analysis.router, prefix="/analysis", tags=["Analysis"])
