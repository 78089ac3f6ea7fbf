"""HTTP API tests. Shared clients are replaced through dependency overrides."""

import json

import pytest
from fastapi.testclient import TestClient

from klinepro.api.deps import get_binance_client, get_opinion_service, get_store
from klinepro.db.store import TableNotFoundError
from klinepro.main import app
from klinepro.services.base import RateLimitError, RemoteServiceError
from klinepro.services.llm import LLMResponse, TradeOpinionService

from tests.conftest import make_bars, wave

OPINION = {
    "probability_up": 0.4,
    "probability_down": 0.6,
    "action": "SELL",
    "entry_price": None,
    "reason": "Overbought",
}


class FakeStore:
    def __init__(self, bars):
        self.tables = {"BTCUSDT_1h": bars}
        self.limits = []

    async def load_bars(self, table_name, limit=None):
        self.limits.append(limit)
        if table_name not in self.tables:
            raise TableNotFoundError(table_name)
        bars = self.tables[table_name]
        return bars[-limit:] if limit else list(bars)


class FakeBinance:
    def __init__(self, bars=None, error=None):
        self.bars = bars or []
        self.error = error
        self.calls = []

    async def fetch_klines(self, symbol, interval, limit):
        self.calls.append((symbol, interval, limit))
        if self.error:
            raise self.error
        return self.bars[-limit:]


class FakeLLM:
    def __init__(self, content=None, error=None):
        self.content = content or json.dumps(OPINION)
        self.error = error

    async def generate(self, system_prompt, user_prompt, **kwargs):
        if self.error:
            raise self.error
        return LLMResponse(content=self.content, model="fake", usage={})

    async def health_check(self):
        return True


@pytest.fixture
def history():
    return make_bars(wave(200))


@pytest.fixture
def overrides(history):
    state = {
        "store": FakeStore(history),
        "binance": FakeBinance(history),
        "opinion": TradeOpinionService(llm_client=FakeLLM()),
    }
    app.dependency_overrides[get_store] = lambda: state["store"]
    app.dependency_overrides[get_binance_client] = lambda: state["binance"]
    app.dependency_overrides[get_opinion_service] = lambda: state["opinion"]
    yield state
    app.dependency_overrides.clear()


@pytest.fixture
def client(overrides):
    return TestClient(app)


def _body(bars, **config):
    return {"bars": [b.model_dump() for b in bars], "config": config}


# =============================================================================
# HEALTH
# =============================================================================


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root(client):
    assert client.get("/").json()["docs"] == "/docs"


# =============================================================================
# KLINES
# =============================================================================


def test_get_klines(client, overrides):
    response = client.get("/api/v1/klines", params={"symbol": "btcusdt", "interval": "4h", "limit": 5})
    assert response.status_code == 200
    data = response.json()
    assert data["symbol"] == "BTCUSDT"
    assert data["interval"] == "4h"
    assert len(data["bars"]) == 5
    assert overrides["binance"].calls[0][0] == "BTCUSDT"


@pytest.mark.parametrize(
    "error, status",
    [
        (RateLimitError("Binance", "slow down"), 429),
        (RemoteServiceError("Binance", "unreachable"), 502),
    ],
)
def test_get_klines_remote_errors(client, overrides, error, status):
    overrides["binance"].error = error
    response = client.get("/api/v1/klines", params={"symbol": "BTCUSDT"})
    assert response.status_code == status


@pytest.mark.parametrize("params", [{"symbol": "BTCUSDT", "limit": 0}, {"symbol": "BTCUSDT", "interval": "7m"}, {}])
def test_get_klines_validation(client, params):
    assert client.get("/api/v1/klines", params=params).status_code == 422


# =============================================================================
# INDICATORS
# =============================================================================


def test_post_indicators(client, history):
    response = client.post("/api/v1/indicators", json=_body(history[:60], sma_period=10))
    assert response.status_code == 200
    report = response.json()
    assert report["bar_count"] == 60
    assert report["sma"]["offset"] == 9
    assert len(report["sma"]["values"]) == 51
    assert report["rsi"]["offset"] == 14


def test_post_snapshot(client, history):
    response = client.post("/api/v1/indicators/snapshot", json=_body(history[:60]))
    assert response.status_code == 200
    snapshot = response.json()
    assert snapshot["close"] == pytest.approx(history[59].close)
    assert 0 <= snapshot["rsi"] <= 100


def test_post_snapshot_short_history(client, history):
    snapshot = client.post("/api/v1/indicators/snapshot", json=_body(history[:3])).json()
    assert snapshot["rsi"] == 50.0
    assert snapshot["macd"] is None
    assert snapshot["signals"] == []


def test_post_indicators_unordered_bars(client, history):
    bars = [history[1], history[0]]
    assert client.post("/api/v1/indicators", json=_body(bars)).status_code == 422


def test_post_indicators_bad_config(client, history):
    response = client.post("/api/v1/indicators", json=_body(history[:30], rsi_period=0))
    assert response.status_code == 422


def test_binance_snapshot(client, overrides, history):
    response = client.get("/api/v1/indicators/binance/ETHUSDT", params={"limit": 100})
    assert response.status_code == 200
    assert response.json()["open_time"] == history[-1].open_time
    assert overrides["binance"].calls[0][2] == 100


def test_binance_snapshot_rate_limited(client, overrides):
    overrides["binance"].error = RateLimitError("Binance", "slow down")
    assert client.get("/api/v1/indicators/binance/ETHUSDT").status_code == 429


def test_binance_snapshot_unordered_feed(client, overrides, history):
    overrides["binance"].bars = [history[1], history[0], history[2]]
    response = client.get("/api/v1/indicators/binance/ETHUSDT", params={"limit": 3})
    assert response.status_code == 502


def test_local_indicators(client, overrides):
    response = client.get("/api/v1/indicators/local/BTCUSDT_1h", params={"limit": 50})
    assert response.status_code == 200
    assert response.json()["bar_count"] == 50
    assert overrides["store"].limits == [50]


def test_local_indicators_missing_table(client):
    assert client.get("/api/v1/indicators/local/NOPE_1h").status_code == 404


# =============================================================================
# ANALYSIS
# =============================================================================


def test_opinion(client, history):
    response = client.post("/api/v1/analysis/opinion", json=_body(history[:80]))
    assert response.status_code == 200
    assert response.json()["action"] == "SELL"


def test_opinion_model_failure(client, overrides, history):
    overrides["opinion"] = TradeOpinionService(
        llm_client=FakeLLM(error=RemoteServiceError("LLM", "No LLM providers configured"))
    )
    response = client.post("/api/v1/analysis/opinion", json=_body(history[:80]))
    assert response.status_code == 502


def test_opinion_invalid_model_output(client, overrides, history):
    overrides["opinion"] = TradeOpinionService(llm_client=FakeLLM(content="no json here"))
    response = client.post("/api/v1/analysis/opinion", json=_body(history[:80]))
    assert response.status_code == 502


def test_local_analysis(client, overrides, history):
    response = client.post("/api/v1/analysis/local/BTCUSDT_1h", params={"offset": 2})
    assert response.status_code == 200
    report = response.json()
    assert overrides["store"].limits == [148]
    assert report["table"] == "BTCUSDT_1h"
    assert report["chunk_size"] == 74
    assert report["total_bars"] == 148
    assert [c["chunk_index"] for c in report["chunks"]] == [0, 1]
    assert report["chunks"][1]["last_open_time"] == history[-1].open_time


def test_local_analysis_missing_table(client):
    assert client.post("/api/v1/analysis/local/NOPE_1h").status_code == 404


def test_local_analysis_bad_offset(client):
    response = client.post("/api/v1/analysis/local/BTCUSDT_1h", params={"offset": 0})
    assert response.status_code == 422
