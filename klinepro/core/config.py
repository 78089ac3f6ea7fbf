"""
Application Configuration

All settings loaded from environment variables.
"""

import os
from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "KlinePro Backend"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # SQLite (local kline store)
    sqlite_path: Optional[str] = None  # Defaults to ./data/klinepro.db
    database_url: Optional[str] = None  # Overrides sqlite_path when set

    # CORS (Frontend URL)
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Binance market data
    binance_base_url: str = "https://api.binance.com"
    binance_timeout: float = 15.0

    # LLM (OpenAI-compatible endpoint)
    llm_api_key: Optional[str] = None
    llm_base_url: str = "https://dashscope.aliyuncs.com/compatible-mode/v1"
    llm_primary_model: str = "qwen-max"
    llm_fallback_model: Optional[str] = "deepseek-v3.1"
    llm_temperature: float = 0.3
    llm_max_tokens: int = 1024
    llm_timeout: float = 60.0
    llm_max_concurrency: int = 4

    # Analysis
    analysis_chunk_size: int = 74

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def resolved_database_url(self) -> str:
        """SQLAlchemy URL for the kline store."""
        if self.database_url:
            return self.database_url
        path = self.sqlite_path or os.path.join(os.getcwd(), "data", "klinepro.db")
        return f"sqlite+aiosqlite:///{path}"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
