"""Shared fixtures."""

import math

import pytest

from klinepro.schemas.market import Bar

HOUR_MS = 3_600_000
START_MS = 1_700_000_000_000


def make_bars(closes, volume: float = 10.0, spread: float = 1.0) -> list[Bar]:
    """Bars with the given closes, one hour apart."""
    bars = []
    prev = closes[0]
    for i, close in enumerate(closes):
        open_ = prev
        bars.append(
            Bar(
                open_time=START_MS + i * HOUR_MS,
                open=open_,
                high=max(open_, close) + spread,
                low=min(open_, close) - spread,
                close=close,
                volume=volume,
            )
        )
        prev = close
    return bars


def wave(n: int, base: float = 100.0, amplitude: float = 5.0) -> list[float]:
    """Deterministic oscillating closes with a slow drift."""
    return [base + amplitude * math.sin(i / 3) + i * 0.1 for i in range(n)]


@pytest.fixture
def bars():
    return make_bars(wave(120))


@pytest.fixture
def short_bars():
    return make_bars(wave(5))
