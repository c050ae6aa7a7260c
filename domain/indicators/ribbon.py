"""
Multi-EMA trend ribbon (GMMA style)

- Fast group: EMA 3, 6, ..., 21
- Slow group: EMA 24, 27, ..., 66
- Baseline: EMA 200

Each group is tinted by its own trend: the shortest EMA above the longest
is bullish, below is bearish, equal is neutral. Opacity grows with the
period inside a group so the bundle reads as a gradient.
"""

import logging
from collections.abc import Sequence
from enum import Enum

from core.interfaces.indicators import BaseIndicator
from core.interfaces.rendering import BaseChartSurface, BaseSeries
from core.models.chart import SeriesPoint
from core.models.market_data import Candle
from domain.indicators.moving_averages import ema_series

logger = logging.getLogger(__name__)

FAST_PERIODS = tuple(range(3, 22, 3))
SLOW_PERIODS = tuple(range(24, 67, 3))
BASELINE_PERIOD = 200
RIBBON_PERIODS = FAST_PERIODS + SLOW_PERIODS + (BASELINE_PERIOD,)

BASELINE_COLOR = "#ffffff"


class Trend(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


# RGB per trend, per group
_FAST_RGB = {Trend.BULLISH: "0,255,255", Trend.BEARISH: "255,165,0", Trend.NEUTRAL: "128,128,128"}
_SLOW_RGB = {Trend.BULLISH: "50,205,50", Trend.BEARISH: "255,0,0", Trend.NEUTRAL: "128,128,128"}


def classify_trend(group: Sequence[list[SeriesPoint]]) -> Trend:
    """Compare the shortest-period EMA's latest value with the longest's"""
    if not group or not group[0] or not group[-1]:
        return Trend.NEUTRAL

    shortest = group[0][-1].value
    longest = group[-1][-1].value
    if shortest > longest:
        return Trend.BULLISH
    if shortest < longest:
        return Trend.BEARISH
    return Trend.NEUTRAL


def fast_color(trend: Trend, index: int) -> str:
    return f"rgba({_FAST_RGB[trend]},{0.4 + index * 0.1:.2f})"


def slow_color(trend: Trend, index: int) -> str:
    return f"rgba({_SLOW_RGB[trend]},{0.3 + index * 0.03:.2f})"


class Ribbon(BaseIndicator):
    """
    23-line EMA ribbon on the main chart

    EMAs are first-close seeded with no minimum-length gate, so every line
    is drawn as soon as there is one candle.

    Example:
        >>> ribbon = Ribbon()
        >>> ribbon.render(chart)
        >>> ribbon.update(history)
        >>> ribbon.fast_trend
        <Trend.BULLISH: 'bullish'>
    """

    def __init__(self):
        super().__init__(periods=len(RIBBON_PERIODS))
        self.periods = RIBBON_PERIODS
        self.series: list[BaseSeries] = []
        self.fast_trend = Trend.NEUTRAL
        self.slow_trend = Trend.NEUTRAL

    def calculate(self, candles: Sequence[Candle]) -> list[list[SeriesPoint]]:
        """One EMA series per ribbon period, in RIBBON_PERIODS order"""
        if not candles:
            return []
        return [ema_series(candles, period, min_length=1) for period in self.periods]

    def colors(self, fast: Trend, slow: Trend) -> list[str]:
        """Line colors for the given group trends, in RIBBON_PERIODS order"""
        n_fast = len(FAST_PERIODS)
        return (
            [fast_color(fast, i) for i in range(n_fast)]
            + [slow_color(slow, i) for i in range(len(SLOW_PERIODS))]
            + [BASELINE_COLOR]
        )

    def _allocate(self, surface: BaseChartSurface) -> None:
        # Outer edges of each group and the baseline are drawn thicker
        edges = {len(FAST_PERIODS) - 1, len(FAST_PERIODS) + len(SLOW_PERIODS) - 1, len(self.periods) - 1}
        self.series = [
            surface.add_line_series(
                line_width=2 if idx in edges else 1,
                price_line_visible=False,
                crosshair_marker_visible=False,
            )
            for idx in range(len(self.periods))
        ]

    def _publish(self, candles: Sequence[Candle]) -> None:
        results = self.calculate(candles)
        n_fast = len(FAST_PERIODS)
        n_slow = len(SLOW_PERIODS)

        self.fast_trend = classify_trend(results[:n_fast])
        self.slow_trend = classify_trend(results[n_fast : n_fast + n_slow])

        for series, points, color in zip(
            self.series, results, self.colors(self.fast_trend, self.slow_trend)
        ):
            series.set_data(points)
            series.apply_options(color=color)

    def _release(self) -> None:
        for series in self.series:
            try:
                self.surface.remove_series(series)
            except Exception as e:
                logger.warning(f"Error removing ribbon series: {e}")
        self.series = []
