"""KlinePro: technical indicators and LLM trade opinions for exchange klines."""

__version__ = "0.1.0"
