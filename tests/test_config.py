"""Settings tests."""

from klinepro.core.config import Settings, get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("ANALYSIS_CHUNK_SIZE", raising=False)
    settings = Settings(_env_file=None)
    assert settings.analysis_chunk_size == 74
    assert settings.llm_primary_model == "qwen-max"
    assert settings.llm_fallback_model == "deepseek-v3.1"
    assert settings.binance_base_url == "https://api.binance.com"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("LLM_MAX_CONCURRENCY", "8")
    monkeypatch.setenv("binance_timeout", "2.5")
    settings = Settings(_env_file=None)
    assert settings.llm_max_concurrency == 8
    assert settings.binance_timeout == 2.5


def test_database_url(tmp_path):
    path = tmp_path / "k.db"
    assert Settings(_env_file=None, sqlite_path=str(path)).resolved_database_url() == (
        f"sqlite+aiosqlite:///{path}"
    )
    assert Settings(
        _env_file=None, database_url="sqlite+aiosqlite:///:memory:"
    ).resolved_database_url() == "sqlite+aiosqlite:///:memory:"


def test_get_settings_cached():
    assert get_settings() is get_settings()
