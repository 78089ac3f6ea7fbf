"""
Technical Indicator Calculations

Pure NumPy implementations of technical indicators.
NO LLM INVOLVEMENT - All math is deterministic.

Every function returns a trimmed series whose first element belongs to the
first bar with enough history. Short input yields empty arrays rather than
an error; only structurally invalid input raises InvalidInputError.
Degenerate ranges resolve to fixed neutral sentinels.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from klinepro.schemas.market import Bar
from klinepro.services.base import InvalidInputError


# =============================================================================
# INPUT VALIDATION
# =============================================================================


def as_series(values, name: str = "values") -> np.ndarray:
    """Convert to a 1-D float array, rejecting non-numeric and non-finite values."""
    try:
        raw = np.asarray(values)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} must be numeric") from e

    # Strings and object arrays (None, ints beyond float range) are not numeric
    if raw.dtype.kind not in "biuf":
        raise InvalidInputError(f"{name} must be numeric, got dtype {raw.dtype}")

    try:
        arr = raw.astype(float)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidInputError(f"{name} must be numeric") from e

    if arr.ndim != 1:
        raise InvalidInputError(f"{name} must be one-dimensional, got {arr.ndim}-D")
    if not np.all(np.isfinite(arr)):
        raise InvalidInputError(f"{name} contains non-finite values")
    return arr


def _check_period(period, name: str = "period") -> int:
    if isinstance(period, bool) or not isinstance(period, (int, np.integer)):
        raise InvalidInputError(f"{name} must be an integer, got {period!r}")
    if period <= 0:
        raise InvalidInputError(f"{name} must be positive, got {period}")
    return int(period)


def _check_lengths(**arrays: np.ndarray) -> None:
    lengths = {name: len(arr) for name, arr in arrays.items()}
    if len(set(lengths.values())) > 1:
        raise InvalidInputError("parallel arrays must have equal length", lengths)


def _hlc(highs, lows, closes) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    highs = as_series(highs, "highs")
    lows = as_series(lows, "lows")
    closes = as_series(closes, "closes")
    _check_lengths(highs=highs, lows=lows, closes=closes)
    return highs, lows, closes


@dataclass
class OHLCVData:
    """OHLCV data arrays for calculations."""

    timestamps: np.ndarray
    opens: np.ndarray
    highs: np.ndarray
    lows: np.ndarray
    closes: np.ndarray
    volumes: np.ndarray

    def __post_init__(self):
        self.timestamps = np.asarray(self.timestamps, dtype=np.int64)
        self.opens = as_series(self.opens, "opens")
        self.highs = as_series(self.highs, "highs")
        self.lows = as_series(self.lows, "lows")
        self.closes = as_series(self.closes, "closes")
        self.volumes = as_series(self.volumes, "volumes")
        _check_lengths(
            timestamps=self.timestamps,
            opens=self.opens,
            highs=self.highs,
            lows=self.lows,
            closes=self.closes,
            volumes=self.volumes,
        )

    def __len__(self) -> int:
        return len(self.closes)

    @classmethod
    def from_bars(cls, bars: Sequence[Bar]) -> "OHLCVData":
        """Convert a bar series to parallel arrays."""
        return cls(
            timestamps=[b.open_time for b in bars],
            opens=[b.open for b in bars],
            highs=[b.high for b in bars],
            lows=[b.low for b in bars],
            closes=[b.close for b in bars],
            volumes=[b.volume for b in bars],
        )


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(values, period: int) -> np.ndarray:
    """Simple Moving Average. First value at index period - 1."""
    data = as_series(values)
    period = _check_period(period)
    if len(data) < period:
        return np.empty(0)

    result = np.empty(len(data) - period + 1)
    for i in range(len(result)):
        result[i] = np.mean(data[i : i + period])
    return result


def ema(values, period: int) -> np.ndarray:
    """Exponential Moving Average. First value at index period - 1."""
    data = as_series(values)
    period = _check_period(period)
    if len(data) < period:
        return np.empty(0)

    result = np.empty(len(data) - period + 1)
    multiplier = 2 / (period + 1)

    # Start with SMA
    result[0] = np.mean(data[:period])

    for i in range(period, len(data)):
        j = i - period + 1
        result[j] = (data[i] - result[j - 1]) * multiplier + result[j - 1]

    return result


def _wilder(values: np.ndarray, period: int) -> np.ndarray:
    """Wilder smoothing: seed with the mean, then avg = (avg*(n-1) + x)/n."""
    if len(values) < period:
        return np.empty(0)

    result = np.empty(len(values) - period + 1)
    result[0] = np.mean(values[:period])
    for i in range(period, len(values)):
        j = i - period + 1
        result[j] = (result[j - 1] * (period - 1) + values[i]) / period
    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes, period: int = 14) -> np.ndarray:
    """
    Relative Strength Index (Wilder).

    First value at index `period`. Zero average loss gives 100.
    """
    closes = as_series(closes, "closes")
    period = _check_period(period)
    if len(closes) < period + 1:
        return np.empty(0)

    deltas = np.diff(closes)
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    avg_gain = _wilder(gains, period)
    avg_loss = _wilder(losses, period)

    with np.errstate(divide="ignore", invalid="ignore"):
        result = 100 - (100 / (1 + avg_gain / avg_loss))
    result[avg_loss == 0] = 100.0

    return result


def macd(
    closes,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    MACD (Moving Average Convergence Divergence).

    Returns: (macd_line, signal_line, histogram), all the same length.
    First value at index max(fast, slow) + signal - 2.
    """
    closes = as_series(closes, "closes")
    fast_period = _check_period(fast_period, "fast_period")
    slow_period = _check_period(slow_period, "slow_period")
    signal_period = _check_period(signal_period, "signal_period")

    fast_ema = ema(closes, fast_period)
    slow_ema = ema(closes, slow_period)

    # Both EMAs end on the last bar; trim the longer one from the front
    length = min(len(fast_ema), len(slow_ema))
    if length < signal_period:
        return np.empty(0), np.empty(0), np.empty(0)

    macd_line = fast_ema[len(fast_ema) - length :] - slow_ema[len(slow_ema) - length :]

    # Signal line is EMA of MACD line
    signal_line = ema(macd_line, signal_period)
    macd_line = macd_line[len(macd_line) - len(signal_line) :]

    histogram = macd_line - signal_line

    return macd_line, signal_line, histogram


def stochastic(
    highs,
    lows,
    closes,
    k_period: int = 14,
    d_period: int = 3,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Stochastic Oscillator.

    Returns: (k, d), same length, first value at index k_period + d_period - 2.
    A flat window (highest high == lowest low) gives %K = 50.
    For a close-only oscillator pass the closes as highs and lows.
    """
    highs, lows, closes = _hlc(highs, lows, closes)
    k_period = _check_period(k_period, "k_period")
    d_period = _check_period(d_period, "d_period")
    if len(closes) < k_period:
        return np.empty(0), np.empty(0)

    k = np.empty(len(closes) - k_period + 1)

    for i in range(len(k)):
        highest_high = np.max(highs[i : i + k_period])
        lowest_low = np.min(lows[i : i + k_period])
        close = closes[i + k_period - 1]

        if highest_high == lowest_low:
            k[i] = 50.0
        else:
            k[i] = ((close - lowest_low) / (highest_high - lowest_low)) * 100

    d = sma(k, d_period)

    return k[len(k) - len(d) :], d


def williams_r(highs, lows, closes, period: int = 14) -> np.ndarray:
    """
    Williams %R. First value at index period - 1.

    A flat window gives -50.
    """
    highs, lows, closes = _hlc(highs, lows, closes)
    period = _check_period(period)
    if len(closes) < period:
        return np.empty(0)

    result = np.empty(len(closes) - period + 1)

    for i in range(len(result)):
        highest_high = np.max(highs[i : i + period])
        lowest_low = np.min(lows[i : i + period])

        if highest_high == lowest_low:
            result[i] = -50.0
        else:
            close = closes[i + period - 1]
            result[i] = ((highest_high - close) / (highest_high - lowest_low)) * -100

    return result


def cci(highs, lows, closes, period: int = 20) -> np.ndarray:
    """
    Commodity Channel Index. First value at index period - 1.

    Zero mean deviation gives 0.
    """
    highs, lows, closes = _hlc(highs, lows, closes)
    period = _check_period(period)
    if len(closes) < period:
        return np.empty(0)

    typical_price = (highs + lows + closes) / 3
    result = np.empty(len(closes) - period + 1)

    for i in range(len(result)):
        window = typical_price[i : i + period]
        mean = np.mean(window)
        mean_dev = np.mean(np.abs(window - mean))

        if mean_dev == 0:
            result[i] = 0.0
        else:
            result[i] = (window[-1] - mean) / (0.015 * mean_dev)

    return result


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def true_range(highs, lows, closes) -> np.ndarray:
    """True Range from the second bar on (needs the previous close)."""
    highs, lows, closes = _hlc(highs, lows, closes)
    if len(closes) < 2:
        return np.empty(0)

    high = highs[1:]
    low = lows[1:]
    prev_close = closes[:-1]

    return np.maximum(
        high - low,
        np.maximum(np.abs(high - prev_close), np.abs(low - prev_close)),
    )


def atr(highs, lows, closes, period: int = 14) -> np.ndarray:
    """Average True Range (Wilder). First value at index period."""
    tr = true_range(highs, lows, closes)
    period = _check_period(period)
    return _wilder(tr, period)


def bollinger_bands(
    closes, period: int = 20, std_dev: float = 2.0
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Bollinger Bands (population standard deviation).

    Returns: (upper, middle, lower, bandwidth, percent_b)
    First value at index period - 1. Zero-width bands give %B = 0.5.
    """
    closes = as_series(closes, "closes")
    period = _check_period(period)
    try:
        std_dev = float(std_dev)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"std_dev must be numeric, got {std_dev!r}") from e
    if not math.isfinite(std_dev) or std_dev < 0:
        raise InvalidInputError(f"std_dev must be finite and >= 0, got {std_dev}")

    middle = sma(closes, period)
    if len(middle) == 0:
        empty = np.empty(0)
        return empty, empty.copy(), empty.copy(), empty.copy(), empty.copy()

    std = np.empty(len(middle))
    for i in range(len(std)):
        std[i] = np.std(closes[i : i + period])

    upper = middle + (std_dev * std)
    lower = middle - (std_dev * std)
    width = upper - lower

    with np.errstate(divide="ignore", invalid="ignore"):
        bandwidth = np.where(middle != 0, width / middle, 0.0)
        percent_b = np.where(width != 0, (closes[period - 1 :] - lower) / width, 0.5)

    return upper, middle, lower, bandwidth, percent_b


# =============================================================================
# VOLUME INDICATORS
# =============================================================================


def obv(closes, volumes) -> np.ndarray:
    """
    On-Balance Volume. One value per bar.

    Seeded with the first volume; adds on a higher close, subtracts on a
    lower close, holds on an equal close.
    """
    closes = as_series(closes, "closes")
    volumes = as_series(volumes, "volumes")
    _check_lengths(closes=closes, volumes=volumes)
    if len(closes) == 0:
        return np.empty(0)

    direction = np.sign(np.diff(closes))
    flow = np.cumsum(direction * volumes[1:])

    return np.concatenate(([volumes[0]], volumes[0] + flow))


# =============================================================================
# TREND INDICATORS
# =============================================================================


def adx(
    highs, lows, closes, period: int = 14
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Average Directional Index (Wilder).

    Returns: (adx, plus_di, minus_di), same length,
    first value at index 2 * period - 1.
    """
    highs, lows, closes = _hlc(highs, lows, closes)
    period = _check_period(period)
    if len(closes) < 2 * period:
        return np.empty(0), np.empty(0), np.empty(0)

    up_move = highs[1:] - highs[:-1]
    down_move = lows[:-1] - lows[1:]

    plus_dm = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)
    tr = true_range(highs, lows, closes)

    # Wilder's running sums are the averages times `period`; the factor
    # cancels in the DI ratios.
    smoothed_plus_dm = _wilder(plus_dm, period)
    smoothed_minus_dm = _wilder(minus_dm, period)
    smoothed_tr = _wilder(tr, period)

    with np.errstate(divide="ignore", invalid="ignore"):
        plus_di = np.where(smoothed_tr > 0, 100 * smoothed_plus_dm / smoothed_tr, 0.0)
        minus_di = np.where(smoothed_tr > 0, 100 * smoothed_minus_dm / smoothed_tr, 0.0)

        di_sum = plus_di + minus_di
        dx = np.where(di_sum > 0, 100 * np.abs(plus_di - minus_di) / di_sum, 0.0)

    adx_line = _wilder(dx, period)
    trim = len(dx) - len(adx_line)

    return adx_line, plus_di[trim:], minus_di[trim:]


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def last_value(arr: np.ndarray, default: Optional[float] = None) -> Optional[float]:
    """Get the last value of a trimmed series, or default when it is empty."""
    return float(arr[-1]) if len(arr) > 0 else default
