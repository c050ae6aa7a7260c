"""
Moving average calculators

Two EMA seedings live here and are intentionally NOT unified:
- ema_series: seeded with the first close (EMA line, Ribbon)
- sma_seeded_ema: seeded with the simple average of the first `period`
  values (MACD internals)
"""

import logging
from collections.abc import Sequence

import numpy as np
import talib

from core.interfaces.indicators import BaseIndicator
from core.interfaces.rendering import BaseChartSurface, BaseSeries
from core.models.chart import EMAConfig, SeriesPoint
from core.models.market_data import Candle

logger = logging.getLogger(__name__)


def ema_series(candles: Sequence[Candle], period: int, min_length: int | None = None) -> list[SeriesPoint]:
    """
    Exponential moving average seeded with the first close

    Formula: EMA[i] = close[i] × k + EMA[i-1] × (1 - k), k = 2 / (period + 1)
             EMA[0] = close[0]

    Args:
        candles: Candles, oldest first
        period: Smoothing period
        min_length: Minimum number of candles required, defaults to `period`.
                    Pass 1 to disable the length gate (Ribbon).

    Returns:
        One point per candle, or [] when the gate fails or period < 1

    Example:
        >>> points = ema_series(candles, period=14)
        >>> points[0].value == candles[0].close
        True
    """
    if period < 1:
        return []
    required = period if min_length is None else min_length
    if not candles or len(candles) < required:
        return []

    k = 2 / (period + 1)
    prev = candles[0].close
    points = [SeriesPoint(time=candles[0].time, value=prev)]

    for candle in candles[1:]:
        prev = candle.close * k + prev * (1 - k)
        points.append(SeriesPoint(time=candle.time, value=prev))

    return points


def sma_seeded_ema(values: Sequence[float], period: int) -> list[float | None]:
    """
    EMA whose first value is the simple average of the first `period` inputs

    The first period-1 outputs are None. This is TA-Lib's default EMA seeding.

    Args:
        values: Input values (no None entries)
        period: Smoothing period

    Returns:
        List aligned with `values`; all None when len(values) < period
    """
    if period < 1 or len(values) < period:
        return [None] * len(values)
    if period == 1:
        # TA-Lib rejects timeperiod=1; with k=1 the EMA is the input itself
        return [float(v) for v in values]

    ema_values = talib.EMA(np.asarray(values, dtype=np.float64), timeperiod=period)
    return [None if np.isnan(v) else float(v) for v in ema_values]


class EMA(BaseIndicator):
    """
    Exponential Moving Average line on the main chart

    Config: {period, color}

    Note:
        Output starts at the first candle (first-close seed). The period only
        gates the minimum history length.

    Example:
        >>> ema = EMA(period=21, color="#f5a623")
        >>> ema.render(chart)
        >>> ema.update(history)
    """

    def __init__(self, period: int = 9, color: str = "orange"):
        super().__init__(period=period, color=color)
        self.period = period
        self.color = color
        self.series: BaseSeries | None = None

    @classmethod
    def from_config(cls, config: EMAConfig) -> "EMA":
        return cls(period=config.period, color=config.color)

    def calculate(self, candles: Sequence[Candle]) -> list[SeriesPoint]:
        """Calculate EMA points"""
        return ema_series(candles, self.period)

    def _allocate(self, surface: BaseChartSurface) -> None:
        self.series = surface.add_line_series(
            color=self.color,
            line_width=2,
            price_line_visible=False,
            crosshair_marker_visible=False,
        )

    def _publish(self, candles: Sequence[Candle]) -> None:
        points = self.calculate(candles)
        if points:
            self.series.set_data(points)

    def update_last(self, candle: Candle, candles: Sequence[Candle]) -> None:
        """Push only the newest EMA point"""
        if not self._rendered or candle is None or len(candles) < self.period:
            return
        points = self.calculate(candles)
        if points:
            self.series.update(points[-1])

    def _release(self) -> None:
        if self.series is not None and self.surface is not None:
            self.surface.remove_series(self.series)
        self.series = None
