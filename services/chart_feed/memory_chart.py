"""
In-memory chart surfaces

Headless implementation of the rendering interfaces. Used by the chart feed
service when no drawing layer is attached, and by the tests to observe what
indicators and the coordinator publish.
"""

import logging
from collections.abc import Sequence

from core.interfaces.rendering import (
    BaseChartSurface,
    BaseRenderSink,
    BaseSeries,
    BaseTimeScale,
    RangeHandler,
)
from core.models.chart import LogicalRange, SeriesPoint
from core.models.market_data import Candle

logger = logging.getLogger(__name__)


class MemorySeries(BaseSeries):
    """Series that keeps its points, options and price lines in lists"""

    def __init__(self, kind: str, **options):
        self.kind = kind
        self.options = dict(options)
        self.points: list[SeriesPoint] = []
        self.price_lines: list[dict] = []
        self.set_data_calls = 0

    def set_data(self, points: Sequence[SeriesPoint]) -> None:
        self.points = list(points)
        self.set_data_calls += 1

    def update(self, point: SeriesPoint) -> None:
        if self.points and point.time < self.points[-1].time:
            raise ValueError(
                f"Cannot update oldest data, last time={self.points[-1].time}, new time={point.time}"
            )
        if self.points and point.time == self.points[-1].time:
            self.points[-1] = point
        else:
            self.points.append(point)

    def apply_options(self, **options) -> None:
        self.options.update(options)

    def create_price_line(
        self, price: float, color: str, line_width: int = 1, line_style: int = 2
    ) -> None:
        self.price_lines.append(
            {"price": price, "color": color, "line_width": line_width, "line_style": line_style}
        )

    @property
    def values(self) -> list[float | None]:
        return [p.value for p in self.points]

    def __repr__(self) -> str:
        return f"MemorySeries({self.kind}, {len(self.points)} points)"


class MemoryTimeScale(BaseTimeScale):
    """Time axis that notifies its handlers synchronously on every range change"""

    def __init__(self):
        self.visible_range: LogicalRange | None = None
        self._handlers: list[RangeHandler] = []

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def subscribe_visible_range_change(self, handler: RangeHandler) -> None:
        self._handlers.append(handler)

    def unsubscribe_visible_range_change(self, handler: RangeHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def set_visible_logical_range(self, visible_range: LogicalRange) -> None:
        self.visible_range = visible_range
        for handler in list(self._handlers):
            handler(visible_range)


class MemoryChart(BaseChartSurface, BaseRenderSink):
    """
    Candlestick chart held in memory

    Acts both as the render sink for candles and as the surface indicators
    draw on. Sub-panels are MemoryCharts themselves.

    Example:
        >>> chart = MemoryChart("chart-btc")
        >>> chart.set_data(history)
        >>> chart.handle_data_update(live_candle)
        >>> chart.candles[-1] == live_candle
        True
    """

    def __init__(self, chart_id: str = "chart", height: int | None = None, parent: "MemoryChart | None" = None):
        self.chart_id = chart_id
        self.height = height
        self.parent = parent
        self.candles: list[Candle] = []
        self.series: list[MemorySeries] = []
        self.panels: list[MemoryChart] = []
        self.removed = False
        self._time_scale = MemoryTimeScale()

    # ------------------------------------------------------------------
    # Render sink
    # ------------------------------------------------------------------

    def set_data(self, candles: Sequence[Candle]) -> None:
        self.candles = list(candles)

    def update(self, candle: Candle) -> None:
        if self.candles and candle.time < self.candles[-1].time:
            raise ValueError(
                f"Cannot update oldest data, last time={self.candles[-1].time}, new time={candle.time}"
            )
        if self.candles and candle.time == self.candles[-1].time:
            self.candles[-1] = candle
        else:
            self.candles.append(candle)

    def handle_data_update(self, candle: Candle) -> None:
        self.update(candle)

    # ------------------------------------------------------------------
    # Surface
    # ------------------------------------------------------------------

    def add_line_series(self, **options) -> MemorySeries:
        series = MemorySeries("line", **options)
        self.series.append(series)
        return series

    def add_histogram_series(self, **options) -> MemorySeries:
        series = MemorySeries("histogram", **options)
        self.series.append(series)
        return series

    def remove_series(self, series: BaseSeries) -> None:
        if series not in self.series:
            raise ValueError(f"{series!r} is not on {self.chart_id}")
        self.series.remove(series)

    def create_panel(self, height: int | None = None) -> "MemoryChart":
        panel = MemoryChart(f"{self.chart_id}/panel-{len(self.panels)}", height=height, parent=self)
        self.panels.append(panel)
        return panel

    def remove(self) -> None:
        if self.removed:
            return
        for panel in list(self.panels):
            panel.remove()
        self.series.clear()
        self.removed = True
        if self.parent is not None and self in self.parent.panels:
            self.parent.panels.remove(self)
        logger.debug(f"Removed surface {self.chart_id}")

    def time_scale(self) -> MemoryTimeScale:
        return self._time_scale

    def __repr__(self) -> str:
        return f"MemoryChart({self.chart_id}, {len(self.candles)} candles)"
