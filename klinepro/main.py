"""
KlinePro Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from klinepro.core.config import settings
from klinepro.api.v1 import router as api_v1_router
from klinepro.db.database import create_db_engine, close_db
from klinepro.db.store import KlineStore
from klinepro.services.llm.client import get_llm_client
from klinepro.services.llm.opinion import TradeOpinionService
from klinepro.services.market_data.binance import BinanceClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    engine = create_db_engine(settings.resolved_database_url(), echo=settings.debug)
    app.state.engine = engine
    app.state.store = KlineStore(engine)
    logger.info("Database engine created")

    app.state.binance = BinanceClient(
        base_url=settings.binance_base_url,
        timeout=settings.binance_timeout,
    )

    llm_client = get_llm_client()
    if not llm_client.is_configured:
        logger.warning("LLM_API_KEY not set - analysis endpoints will fail")
    app.state.opinion_service = TradeOpinionService(
        llm_client=llm_client,
        max_concurrency=settings.llm_max_concurrency,
    )

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.binance.close()
    await close_db(engine)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    KlinePro Indicator & Analysis API

    ## Architecture
    - **Market Data**: Fetches klines from Binance
    - **Local Store**: Per-symbol kline tables in SQLite
    - **Indicator Engine**: Calculates technical indicators (pure Python/NumPy)
    - **Analysis Layer**: LLM-generated trade opinions over indicator reports

    ## Core Principles
    - All numbers come from the indicator engine, never from the model
    - Probabilities, not certainty
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "KlinePro Backend API",
        "docs": "/docs",
        "health": "/health",
    }
