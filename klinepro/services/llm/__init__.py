"""
LLM Summarization Service

CONTRACT:
    Input:  IndicatorReport (+ optional IndicatorSnapshot)
    Output: TradeOpinion

RESPONSIBILITIES:
    - Prompt formatting (floats rounded to 4 decimals)
    - Primary/fallback model calls (Qwen, then DeepSeek)
    - Validation of the model's JSON answer
    - Chunked analysis of long bar histories

CRITICAL RULES:
    - LLM does NO math - all numbers come from Indicator Engine
    - Invalid model output is an error, never a guess
"""

from klinepro.services.llm.interface import TradeOpinionServiceInterface
from klinepro.services.llm.client import (
    BaseLLMClient,
    LLMClient,
    LLMConfig,
    LLMResponse,
    OpenAICompatibleClient,
    get_llm_client,
)
from klinepro.services.llm.opinion import (
    TradeOpinionService,
    chunk_bars,
    get_trade_opinion_service,
    parse_trade_opinion,
)

__all__ = [
    # Interface
    "TradeOpinionServiceInterface",
    # Client
    "BaseLLMClient",
    "LLMClient",
    "LLMConfig",
    "LLMResponse",
    "OpenAICompatibleClient",
    "get_llm_client",
    # Service
    "TradeOpinionService",
    "chunk_bars",
    "get_trade_opinion_service",
    "parse_trade_opinion",
]
