"""
Momentum indicators

Implementations:
- RSI: Relative Strength Index (Wilder smoothing), own sub-panel
- MACD: Moving Average Convergence Divergence, own sub-panel
"""

import logging
from collections.abc import Sequence

import numpy as np
from pydantic import BaseModel

from core.interfaces.indicators import BaseIndicator
from core.interfaces.rendering import BaseChartSurface, BaseSeries
from core.models.chart import MACDConfig, RSIConfig, SeriesPoint
from core.models.market_data import Candle
from domain.indicators.moving_averages import sma_seeded_ema
from domain.indicators.panels import TimeScaleLink

logger = logging.getLogger(__name__)

OVERBOUGHT = 70
OVERSOLD = 30


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


class RSI(BaseIndicator):
    """
    Relative Strength Index (Wilder)

    Formula:
        RS = Average Gain / Average Loss
        RSI = 100 - (100 / (1 + RS)), or 100 when Average Loss == 0

    Seeding:
        Averages start as plain means of the first `period` transitions, then
        avg = (avg × (period - 1) + current) / period

    Interpretation:
        - RSI > 70: Overbought
        - RSI < 30: Oversold

    Example:
        >>> rsi = RSI(period=14)
        >>> points = rsi.calculate(candles)  # first 14 values are None
    """

    def __init__(self, period: int = 14, color: str = "#B0BEC5", height: int = 120):
        super().__init__(period=period, color=color, height=height)
        self.period = period
        self.color = color
        self.height = height

        self.panel: BaseChartSurface | None = None
        self.series: BaseSeries | None = None
        self.link: TimeScaleLink | None = None
        self.last_value: float | None = None

    @classmethod
    def from_config(cls, config: RSIConfig) -> "RSI":
        return cls(period=config.period, color=config.color, height=config.height)

    def calculate(self, candles: Sequence[Candle]) -> list[SeriesPoint]:
        """
        Calculate RSI points

        Returns:
            [] when len(candles) <= period, otherwise one point per candle
            with the first `period` values set to None
        """
        period = self.period
        if period < 1 or not candles or len(candles) <= period:
            return []

        closes = np.array([c.close for c in candles], dtype=np.float64)
        changes = np.diff(closes)

        points = [SeriesPoint(time=c.time, value=None) for c in candles[:period]]

        seed = changes[:period]
        avg_gain = float(seed[seed > 0].sum()) / period
        avg_loss = float(-seed[seed < 0].sum()) / period
        points.append(
            SeriesPoint(time=candles[period].time, value=_rsi_from_averages(avg_gain, avg_loss))
        )

        for i in range(period + 1, len(candles)):
            change = float(changes[i - 1])
            current_gain = change if change > 0 else 0.0
            current_loss = -change if change < 0 else 0.0

            avg_gain = (avg_gain * (period - 1) + current_gain) / period
            avg_loss = (avg_loss * (period - 1) + current_loss) / period

            points.append(
                SeriesPoint(time=candles[i].time, value=_rsi_from_averages(avg_gain, avg_loss))
            )

        return points

    def _allocate(self, surface: BaseChartSurface) -> None:
        self.panel = surface.create_panel(height=self.height)
        self.series = self.panel.add_line_series(color=self.color, line_width=2)
        self.series.create_price_line(price=OVERBOUGHT, color="red", line_width=1, line_style=2)
        self.series.create_price_line(price=OVERSOLD, color="green", line_width=1, line_style=2)

        self.link = TimeScaleLink(surface.time_scale(), self.panel.time_scale())
        self.link.attach()

    def _publish(self, candles: Sequence[Candle]) -> None:
        points = self.calculate(candles)
        if points:
            self.series.set_data(points)
            self.last_value = points[-1].value

    def _release(self) -> None:
        if self.link is not None:
            self.link.detach()
        if self.panel is not None:
            self.panel.remove()
        self.link = None
        self.series = None
        self.panel = None
        self.last_value = None


class MACDResult(BaseModel):
    """Aligned MACD output; every list has one entry per input candle"""

    macd_line: list[float | None]
    signal_line: list[float | None]
    histogram: list[float | None]


class MACD(BaseIndicator):
    """
    Moving Average Convergence Divergence

    Components:
        - MACD Line = EMA(fast) - EMA(slow), SMA-seeded EMAs
        - Signal Line = EMA(signal) over the MACD values with gaps removed,
          mapped back onto the MACD positions
        - Histogram = MACD Line - Signal Line

    Interpretation:
        - Histogram > 0: Upward momentum
        - Histogram < 0: Downward momentum

    Example:
        >>> macd = MACD(fast_period=12, slow_period=26, signal_period=9)
        >>> result = macd.calculate(candles)
        >>> result.histogram[-1]
    """

    MACD_COLOR = "#2196f3"
    SIGNAL_COLOR = "#ff9800"
    POSITIVE_COLOR = "rgba(76,175,80,0.6)"
    NEGATIVE_COLOR = "rgba(244,67,54,0.6)"

    def __init__(self, fast_period: int = 12, slow_period: int = 26, signal_period: int = 9):
        super().__init__(fast=fast_period, slow=slow_period, signal=signal_period)
        self.fast_period = fast_period
        self.slow_period = slow_period
        self.signal_period = signal_period

        self.panel: BaseChartSurface | None = None
        self.macd_series: BaseSeries | None = None
        self.signal_series: BaseSeries | None = None
        self.histogram_series: BaseSeries | None = None
        self.link: TimeScaleLink | None = None

    @classmethod
    def from_config(cls, config: MACDConfig) -> "MACD":
        return cls(
            fast_period=config.fast_period,
            slow_period=config.slow_period,
            signal_period=config.signal_period,
        )

    def calculate(self, candles: Sequence[Candle]) -> MACDResult:
        """Calculate all MACD components aligned to `candles`"""
        closes = [c.close for c in candles]
        fast = sma_seeded_ema(closes, self.fast_period)
        slow = sma_seeded_ema(closes, self.slow_period)

        macd_line = [
            f - s if f is not None and s is not None else None for f, s in zip(fast, slow)
        ]

        compact_signal = iter(
            sma_seeded_ema([v for v in macd_line if v is not None], self.signal_period)
        )
        signal_line = [None if v is None else next(compact_signal) for v in macd_line]

        histogram = [
            m - s if m is not None and s is not None else None
            for m, s in zip(macd_line, signal_line)
        ]

        return MACDResult(macd_line=macd_line, signal_line=signal_line, histogram=histogram)

    def _allocate(self, surface: BaseChartSurface) -> None:
        self.panel = surface.create_panel()
        self.macd_series = self.panel.add_line_series(color=self.MACD_COLOR, line_width=1)
        self.signal_series = self.panel.add_line_series(color=self.SIGNAL_COLOR, line_width=1)
        self.histogram_series = self.panel.add_histogram_series(
            color="#888", price_format="volume"
        )

        # Pan sync only (zoom stays per panel)
        self.link = TimeScaleLink(surface.time_scale(), self.panel.time_scale())
        self.link.attach()

    def _publish(self, candles: Sequence[Candle]) -> None:
        result = self.calculate(candles)
        times = [c.time for c in candles]

        self.macd_series.set_data(
            [SeriesPoint(time=t, value=v) for t, v in zip(times, result.macd_line)]
        )
        self.signal_series.set_data(
            [SeriesPoint(time=t, value=v) for t, v in zip(times, result.signal_line)]
        )
        # Undefined histogram bars are drawn as 0
        self.histogram_series.set_data(
            [
                SeriesPoint(
                    time=t,
                    value=h if h is not None else 0.0,
                    color=self.POSITIVE_COLOR if h is None or h >= 0 else self.NEGATIVE_COLOR,
                )
                for t, h in zip(times, result.histogram)
            ]
        )

    def _release(self) -> None:
        if self.link is not None:
            self.link.detach()
        if self.panel is not None:
            self.panel.remove()
        self.link = None
        self.macd_series = None
        self.signal_series = None
        self.histogram_series = None
        self.panel = None
