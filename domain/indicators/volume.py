"""
Volume histogram (pass-through formatter, no calculation)
"""

from collections.abc import Sequence

from core.interfaces.indicators import BaseIndicator
from core.interfaces.rendering import BaseChartSurface, BaseSeries
from core.models.chart import SeriesPoint
from core.models.market_data import Candle


class Volume(BaseIndicator):
    """Volume bars colored by candle direction, in their own panel"""

    def __init__(self, height: int = 120, up_color: str = "#26a69a", down_color: str = "#ef5350"):
        super().__init__(height=height, up_color=up_color, down_color=down_color)
        self.height = height
        self.up_color = up_color
        self.down_color = down_color

        self.panel: BaseChartSurface | None = None
        self.series: BaseSeries | None = None

    def point(self, candle: Candle) -> SeriesPoint:
        color = self.up_color if candle.close >= candle.open else self.down_color
        return SeriesPoint(time=candle.time, value=candle.volume, color=color)

    def calculate(self, candles: Sequence[Candle]) -> list[SeriesPoint]:
        return [self.point(c) for c in candles]

    def _allocate(self, surface: BaseChartSurface) -> None:
        self.panel = surface.create_panel(height=self.height)
        self.series = self.panel.add_histogram_series(
            price_format="volume", last_value_visible=False
        )

    def _publish(self, candles: Sequence[Candle]) -> None:
        self.series.set_data(self.calculate(candles))

    def update_last(self, candle: Candle, candles: Sequence[Candle]) -> None:
        if not self._rendered or candle is None:
            return
        self.series.update(self.point(candle))

    def _release(self) -> None:
        if self.panel is not None:
            self.panel.remove()
        self.series = None
        self.panel = None
