"""
Rendering interfaces consumed by the feed core

The drawing layer itself is an external collaborator. The core only needs:
- a render sink for candles (bulk replace, incremental point, merged update)
- chart surfaces that allocate series and sub-panels for indicators
- time scales that can be pan-synchronised

MemoryChart (services/chart_feed/memory_chart.py) implements all of them.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from core.models.chart import LogicalRange, SeriesPoint
from core.models.market_data import Candle

RangeHandler = Callable[[LogicalRange | None], None]


class BaseRenderSink(ABC):
    """Candle destination fed by the DataCoordinator"""

    @abstractmethod
    def set_data(self, candles: Sequence[Candle]) -> None:
        """Bulk replace all candles"""

    @abstractmethod
    def update(self, candle: Candle) -> None:
        """
        Single incremental point

        The point's time must be >= the time of the last point given to this
        sink (equal time replaces the last bar).
        """

    @abstractmethod
    def handle_data_update(self, candle: Candle) -> None:
        """Merged live tick notification from the coordinator"""


class BaseSeries(ABC):
    """One drawable series owned by an indicator"""

    @abstractmethod
    def set_data(self, points: Sequence[SeriesPoint]) -> None:
        """Replace the whole series"""

    @abstractmethod
    def update(self, point: SeriesPoint) -> None:
        """Append or replace the last point"""

    @abstractmethod
    def apply_options(self, **options) -> None:
        """Change display options (color, visibility, ...)"""

    @abstractmethod
    def create_price_line(
        self, price: float, color: str, line_width: int = 1, line_style: int = 2
    ) -> None:
        """Horizontal reference line (e.g. RSI 70/30)"""


class BaseTimeScale(ABC):
    """Horizontal axis of a chart surface"""

    @abstractmethod
    def subscribe_visible_range_change(self, handler: RangeHandler) -> None:
        pass

    @abstractmethod
    def unsubscribe_visible_range_change(self, handler: RangeHandler) -> None:
        pass

    @abstractmethod
    def set_visible_logical_range(self, visible_range: LogicalRange) -> None:
        """Move the axis; implementations notify subscribers synchronously"""


class BaseChartSurface(ABC):
    """
    A chart (main pane or indicator sub-panel) that series can be added to
    """

    @abstractmethod
    def add_line_series(self, **options) -> BaseSeries:
        pass

    @abstractmethod
    def add_histogram_series(self, **options) -> BaseSeries:
        pass

    @abstractmethod
    def remove_series(self, series: BaseSeries) -> None:
        pass

    @abstractmethod
    def create_panel(self, height: int | None = None) -> "BaseChartSurface":
        """Allocate a sub-panel below this surface"""

    @abstractmethod
    def remove(self) -> None:
        """Tear down this surface and everything on it"""

    @abstractmethod
    def time_scale(self) -> BaseTimeScale:
        pass
