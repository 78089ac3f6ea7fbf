"""
Indicator Engine Service Implementation

Calculates all technical indicators from OHLCV bars.
NO LLM INVOLVEMENT - Pure NumPy calculations.
"""

from typing import Optional, Sequence, Union

from klinepro.schemas.market import Bar
from klinepro.schemas.indicators import (
    ADXData,
    ADXSeries,
    BollingerBandsData,
    BollingerSeries,
    IndicatorConfig,
    IndicatorReport,
    IndicatorRequest,
    IndicatorSeries,
    IndicatorSnapshot,
    MACDData,
    MACDSeries,
    StochasticData,
    StochasticSeries,
)
from klinepro.services.indicators.interface import IndicatorServiceInterface
from klinepro.services.indicators.calculations import (
    OHLCVData,
    sma,
    ema,
    rsi,
    macd,
    stochastic,
    williams_r,
    cci,
    atr,
    bollinger_bands,
    obv,
    adx,
    last_value,
)
from klinepro.services.indicators.signals import (
    adx_strength,
    generate_signals,
    rsi_level,
)

# Caller-visible RSI when there is not enough history
NEUTRAL_RSI = 50.0


def _to_data(data: Union[OHLCVData, Sequence[Bar]]) -> OHLCVData:
    if isinstance(data, OHLCVData):
        return data
    return OHLCVData.from_bars(data)


def compute_indicators(
    data: Union[OHLCVData, Sequence[Bar]],
    config: Optional[IndicatorConfig] = None,
) -> IndicatorReport:
    """
    Compute every indicator for one series.

    Pure and re-entrant: no I/O, no state shared between calls.
    """
    data = _to_data(data)
    config = config or IndicatorConfig()

    closes, highs, lows, volumes = data.closes, data.highs, data.lows, data.volumes

    m = config.macd
    macd_line, signal_line, histogram = macd(closes, m.fast, m.slow, m.signal)

    bb = config.bollinger
    upper, middle, lower, bandwidth, percent_b = bollinger_bands(
        closes, bb.period, bb.std_dev_multiplier
    )

    st = config.stochastic
    k_arr, d_arr = stochastic(highs, lows, closes, st.k_period, st.d_period)

    adx_arr, plus_di, minus_di = adx(highs, lows, closes, config.adx_period)

    return IndicatorReport(
        bar_count=len(data),
        config=config,
        sma=IndicatorSeries(
            offset=config.sma_period - 1,
            values=sma(closes, config.sma_period).tolist(),
        ),
        ema=IndicatorSeries(
            offset=config.ema_period - 1,
            values=ema(closes, config.ema_period).tolist(),
        ),
        rsi=IndicatorSeries(
            offset=config.rsi_period,
            values=rsi(closes, config.rsi_period).tolist(),
        ),
        macd=MACDSeries(
            offset=max(m.fast, m.slow) + m.signal - 2,
            macd_line=macd_line.tolist(),
            signal_line=signal_line.tolist(),
            histogram=histogram.tolist(),
        ),
        bollinger=BollingerSeries(
            offset=bb.period - 1,
            upper=upper.tolist(),
            middle=middle.tolist(),
            lower=lower.tolist(),
            bandwidth=bandwidth.tolist(),
            percent_b=percent_b.tolist(),
        ),
        stochastic=StochasticSeries(
            offset=st.k_period + st.d_period - 2,
            k=k_arr.tolist(),
            d=d_arr.tolist(),
        ),
        atr=IndicatorSeries(
            offset=config.atr_period,
            values=atr(highs, lows, closes, config.atr_period).tolist(),
        ),
        adx=ADXSeries(
            offset=2 * config.adx_period - 1,
            adx=adx_arr.tolist(),
            plus_di=plus_di.tolist(),
            minus_di=minus_di.tolist(),
        ),
        obv=IndicatorSeries(offset=0, values=obv(closes, volumes).tolist()),
        williams_r=IndicatorSeries(
            offset=config.williams_r_period - 1,
            values=williams_r(highs, lows, closes, config.williams_r_period).tolist(),
        ),
        cci=IndicatorSeries(
            offset=config.cci_period - 1,
            values=cci(highs, lows, closes, config.cci_period).tolist(),
        ),
    )


def build_snapshot(
    report: IndicatorReport,
    data: Union[OHLCVData, Sequence[Bar]],
) -> IndicatorSnapshot:
    """Latest value of every indicator plus rule-based signals."""
    data = _to_data(data)
    close = last_value(data.closes)
    open_time = int(data.timestamps[-1]) if len(data) > 0 else None

    sma_val = last_value(report.sma.values)
    rsi_val = last_value(report.rsi.values)

    macd_data = None
    if report.macd.macd_line:
        macd_data = MACDData(
            macd_line=report.macd.macd_line[-1],
            signal_line=report.macd.signal_line[-1],
            histogram=report.macd.histogram[-1],
        )

    bb_data = None
    if report.bollinger.middle:
        bb = report.bollinger
        bb_data = BollingerBandsData(
            upper=bb.upper[-1],
            middle=bb.middle[-1],
            lower=bb.lower[-1],
            bandwidth=bb.bandwidth[-1],
            percent_b=bb.percent_b[-1],
        )

    stoch_data = None
    if report.stochastic.k:
        stoch_data = StochasticData(k=report.stochastic.k[-1], d=report.stochastic.d[-1])

    adx_data = None
    if report.adx.adx:
        adx_data = ADXData(
            adx=report.adx.adx[-1],
            plus_di=report.adx.plus_di[-1],
            minus_di=report.adx.minus_di[-1],
        )

    rsi_display = rsi_val if rsi_val is not None else NEUTRAL_RSI

    return IndicatorSnapshot(
        open_time=open_time,
        close=close,
        sma=sma_val,
        ema=last_value(report.ema.values),
        rsi=rsi_display,
        rsi_level=rsi_level(rsi_display),
        macd=macd_data,
        bollinger=bb_data,
        stochastic=stoch_data,
        atr=last_value(report.atr.values),
        adx=adx_data,
        adx_strength=adx_strength(adx_data.adx if adx_data else None),
        obv=last_value(report.obv.values),
        williams_r=last_value(report.williams_r.values),
        cci=last_value(report.cci.values),
        signals=generate_signals(close, sma_val, rsi_val, macd_data, stoch_data, bb_data),
    )


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Engine Service.

    Calculates technical indicators for market analysis.
    All calculations are deterministic and reproducible.
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    async def execute(self, input_data: IndicatorRequest) -> IndicatorReport:
        """Calculate indicators for the request's bars."""
        return compute_indicators(input_data.bars, input_data.config)

    async def snapshot(self, input_data: IndicatorRequest) -> IndicatorSnapshot:
        """Latest indicator values plus rule-based signals."""
        data = OHLCVData.from_bars(input_data.bars)
        report = compute_indicators(data, input_data.config)
        return build_snapshot(report, data)

    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        return True


# Singleton instance
_service_instance: Optional[IndicatorService] = None


def get_indicator_service() -> IndicatorService:
    """Get or create indicator service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = IndicatorService()
    return _service_instance
