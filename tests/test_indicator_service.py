"""Indicator service tests: report alignment, snapshot, request validation."""

import pytest
from pydantic import ValidationError

from klinepro.schemas.indicators import (
    IndicatorConfig,
    IndicatorRequest,
    RSILevel,
)
from klinepro.schemas.market import Bar
from klinepro.services.indicators import (
    IndicatorService,
    build_snapshot,
    compute_indicators,
    get_indicator_service,
)
from klinepro.services.indicators.calculations import OHLCVData, rsi, sma
from klinepro.services.indicators.service import NEUTRAL_RSI

from tests.conftest import make_bars, wave


def _series_lengths(report):
    return {
        "sma": (report.sma.offset, len(report.sma.values)),
        "ema": (report.ema.offset, len(report.ema.values)),
        "rsi": (report.rsi.offset, len(report.rsi.values)),
        "macd": (report.macd.offset, len(report.macd.macd_line)),
        "bollinger": (report.bollinger.offset, len(report.bollinger.middle)),
        "stochastic": (report.stochastic.offset, len(report.stochastic.k)),
        "atr": (report.atr.offset, len(report.atr.values)),
        "adx": (report.adx.offset, len(report.adx.adx)),
        "obv": (report.obv.offset, len(report.obv.values)),
        "williams_r": (report.williams_r.offset, len(report.williams_r.values)),
        "cci": (report.cci.offset, len(report.cci.values)),
    }


def test_report_series_end_on_last_bar(bars):
    report = compute_indicators(bars)
    assert report.bar_count == len(bars)
    for name, (offset, length) in _series_lengths(report).items():
        assert offset + length == len(bars), name


def test_report_default_offsets(bars):
    report = compute_indicators(bars)
    assert report.sma.offset == 19
    assert report.ema.offset == 19
    assert report.rsi.offset == 14
    assert report.macd.offset == 33
    assert report.bollinger.offset == 19
    assert report.stochastic.offset == 15
    assert report.atr.offset == 14
    assert report.adx.offset == 27
    assert report.obv.offset == 0
    assert report.williams_r.offset == 13
    assert report.cci.offset == 19


def test_report_uses_config(bars):
    config = IndicatorConfig(sma_period=5, rsi_period=7)
    report = compute_indicators(bars, config)
    closes = [b.close for b in bars]
    assert report.sma.offset == 4
    assert report.sma.values == pytest.approx(sma(closes, 5).tolist())
    assert report.rsi.values == pytest.approx(rsi(closes, 7).tolist())


def test_report_accepts_ohlcv_data(bars):
    from_bars = compute_indicators(bars)
    from_data = compute_indicators(OHLCVData.from_bars(bars))
    assert from_bars == from_data


def test_short_input_report_is_empty_not_error(short_bars):
    report = compute_indicators(short_bars)
    assert report.sma.values == []
    assert report.rsi.values == []
    assert report.macd.macd_line == []
    assert report.adx.adx == []
    assert len(report.obv.values) == len(short_bars)


def test_snapshot_latest_values(bars):
    data = OHLCVData.from_bars(bars)
    report = compute_indicators(data)
    snapshot = build_snapshot(report, data)

    assert snapshot.open_time == bars[-1].open_time
    assert snapshot.close == bars[-1].close
    assert snapshot.sma == report.sma.values[-1]
    assert snapshot.rsi == report.rsi.values[-1]
    assert snapshot.macd.histogram == report.macd.histogram[-1]
    assert snapshot.adx.adx == report.adx.adx[-1]
    assert snapshot.adx_strength is not None
    assert snapshot.signals


def test_snapshot_defaults_with_short_history(short_bars):
    report = compute_indicators(short_bars)
    snapshot = build_snapshot(report, short_bars)

    assert snapshot.rsi == NEUTRAL_RSI
    assert snapshot.rsi_level == RSILevel.NEUTRAL
    assert snapshot.sma is None
    assert snapshot.macd is None
    assert snapshot.bollinger is None
    assert snapshot.adx is None
    assert snapshot.adx_strength is None
    assert snapshot.signals == []
    assert snapshot.obv is not None


def test_snapshot_with_no_bars():
    report = compute_indicators([])
    snapshot = build_snapshot(report, [])
    assert report.bar_count == 0
    assert snapshot.open_time is None
    assert snapshot.close is None
    assert snapshot.rsi == NEUTRAL_RSI


def test_request_rejects_unordered_bars():
    bars = make_bars(wave(3))
    with pytest.raises(ValidationError):
        IndicatorRequest(bars=[bars[1], bars[0], bars[2]])


def test_request_rejects_duplicate_open_time():
    bars = make_bars(wave(2))
    with pytest.raises(ValidationError):
        IndicatorRequest(bars=[bars[0], bars[0]])


def test_bar_rejects_inverted_range():
    with pytest.raises(ValidationError):
        Bar(open_time=0, open=10, high=9, low=11, close=10, volume=1)


def test_config_rejects_non_positive_period():
    with pytest.raises(ValidationError):
        IndicatorConfig(rsi_period=0)


async def test_service_execute_and_snapshot(bars):
    service = IndicatorService()
    request = IndicatorRequest(bars=bars)

    report = await service.execute(request)
    snapshot = await service.snapshot(request)

    assert report == compute_indicators(bars)
    assert snapshot.close == bars[-1].close
    assert await service.health_check() is True
    assert service.name == "IndicatorService"


def test_get_indicator_service_is_singleton():
    assert get_indicator_service() is get_indicator_service()
