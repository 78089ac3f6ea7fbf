"""
Rule-based indicator signals.

Deterministic interpretation of the latest indicator values. These are the
same rules a human reads off the chart; the model layer receives them as
context and never recomputes them.
"""

from typing import Optional

from klinepro.schemas.indicators import (
    BollingerBandsData,
    IndicatorSignal,
    MACDData,
    RSILevel,
    SignalType,
    StochasticData,
    TrendStrength,
)

RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30
STOCH_OVERBOUGHT = 80
STOCH_OVERSOLD = 20


def rsi_level(rsi: float) -> RSILevel:
    if rsi >= RSI_OVERBOUGHT:
        return RSILevel.OVERBOUGHT
    if rsi >= 60:
        return RSILevel.STRONG
    if rsi >= 40:
        return RSILevel.NEUTRAL
    if rsi >= RSI_OVERSOLD:
        return RSILevel.WEAK
    return RSILevel.OVERSOLD


def adx_strength(adx: Optional[float]) -> Optional[TrendStrength]:
    if adx is None:
        return None
    if adx >= 40:
        return TrendStrength.VERY_STRONG
    if adx >= 25:
        return TrendStrength.STRONG
    if adx >= 20:
        return TrendStrength.TRENDING
    return TrendStrength.WEAK


def generate_signals(
    price: Optional[float],
    sma: Optional[float],
    rsi: Optional[float],
    macd: Optional[MACDData],
    stochastic: Optional[StochasticData],
    bollinger: Optional[BollingerBandsData],
) -> list[IndicatorSignal]:
    """
    Derive trading signals from the latest indicator values.

    Returns an empty list when any input is unavailable (insufficient data).
    """
    if None in (price, sma, rsi, macd, stochastic, bollinger):
        return []

    signals: list[IndicatorSignal] = []

    # 1. Trend
    if price > sma:
        signals.append(
            IndicatorSignal(
                indicator="SMA",
                signal=SignalType.BUY,
                description="Price above SMA - bullish trend",
            )
        )
    else:
        signals.append(
            IndicatorSignal(
                indicator="SMA",
                signal=SignalType.SELL,
                description="Price below SMA - bearish trend",
            )
        )

    # 2. RSI
    if rsi > RSI_OVERBOUGHT:
        signals.append(
            IndicatorSignal(
                indicator="RSI",
                signal=SignalType.SELL,
                description=f"RSI > {RSI_OVERBOUGHT} - overbought",
            )
        )
    elif rsi < RSI_OVERSOLD:
        signals.append(
            IndicatorSignal(
                indicator="RSI",
                signal=SignalType.BUY,
                description=f"RSI < {RSI_OVERSOLD} - oversold",
            )
        )

    # 3. MACD
    if macd.histogram > 0 and macd.macd_line > macd.signal_line:
        signals.append(
            IndicatorSignal(
                indicator="MACD",
                signal=SignalType.BUY,
                description="Positive histogram, MACD above signal line - bullish momentum",
            )
        )
    elif macd.histogram < 0 and macd.macd_line < macd.signal_line:
        signals.append(
            IndicatorSignal(
                indicator="MACD",
                signal=SignalType.SELL,
                description="Negative histogram, MACD below signal line - bearish momentum",
            )
        )

    # 4. Stochastic
    if stochastic.k < STOCH_OVERSOLD and stochastic.d < STOCH_OVERSOLD:
        signals.append(
            IndicatorSignal(
                indicator="STOCHASTIC",
                signal=SignalType.BUY,
                description="Stochastic oversold - potential buy",
            )
        )
    elif stochastic.k > STOCH_OVERBOUGHT and stochastic.d > STOCH_OVERBOUGHT:
        signals.append(
            IndicatorSignal(
                indicator="STOCHASTIC",
                signal=SignalType.SELL,
                description="Stochastic overbought - potential sell",
            )
        )

    # 5. Bollinger Bands
    if price > bollinger.upper:
        signals.append(
            IndicatorSignal(
                indicator="BOLLINGER",
                signal=SignalType.SELL,
                description="Price above upper band - overextended, pullback likely",
            )
        )
    elif price < bollinger.lower:
        signals.append(
            IndicatorSignal(
                indicator="BOLLINGER",
                signal=SignalType.BUY,
                description="Price below lower band - oversold, rebound likely",
            )
        )

    return signals
