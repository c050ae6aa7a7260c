"""
Chart Session - the board of charts a user is looking at

Each chart is one symbol/interval on one surface with its indicators.
Adding a chart validates the symbol before anything is subscribed.
"""

import logging
from collections.abc import Iterable

from config.loader import ChartConfig, IndicatorSpec
from core.interfaces.indicators import BaseIndicator
from core.interfaces.rendering import BaseChartSurface, BaseRenderSink
from core.models.market_data import SubscriptionKey
from domain.indicators.registry import IndicatorRegistry
from services.chart_feed.coordinator import DataCoordinator, FeedConsumer
from services.chart_feed.feed_client import FeedClient

logger = logging.getLogger(__name__)


class Chart:
    """One chart on the board"""

    def __init__(self, chart_id: str, surface: BaseChartSurface, consumer: FeedConsumer):
        self.chart_id = chart_id
        self.surface = surface
        self.consumer = consumer

    @property
    def key(self) -> SubscriptionKey:
        return self.consumer.key

    @property
    def indicators(self) -> list[BaseIndicator]:
        return self.consumer.indicators

    def __repr__(self) -> str:
        return f"Chart({self.chart_id}, {self.key})"


class ChartSession:
    """
    Chart board on top of one FeedClient and one DataCoordinator

    Example:
        >>> session = ChartSession(feed)
        >>> chart = await session.add_chart("chart-btc", "BTCUSDT", "1m", MemoryChart())
        >>> await session.switch_interval("chart-btc", "5m")
        >>> await session.remove_chart("chart-btc")
    """

    def __init__(self, feed: FeedClient, coordinator: DataCoordinator | None = None):
        self.feed = feed
        self.coordinator = coordinator or DataCoordinator(feed)
        self.charts: dict[str, Chart] = {}

    def __contains__(self, chart_id: str) -> bool:
        return chart_id in self.charts

    def get(self, chart_id: str) -> Chart | None:
        return self.charts.get(chart_id)

    async def add_chart(
        self,
        chart_id: str,
        symbol: str,
        interval: str,
        surface: BaseChartSurface,
        indicators: Iterable[IndicatorSpec | dict] = (),
    ) -> Chart | None:
        """
        Validate the symbol, render indicators, start the live feed

        Args:
            chart_id: Unique chart id on this board
            symbol: Exchange symbol (case-insensitive)
            interval: Kline interval literal
            surface: Surface that is also the candle render sink
            indicators: IndicatorSpec (or dicts with type/params)

        Returns:
            The new chart, or None if the symbol is not listed

        Raises:
            ValueError: duplicate chart id, bad interval, unknown indicator type
        """
        if chart_id in self.charts:
            raise ValueError(f"Chart already exists: {chart_id}")

        key = SubscriptionKey.of(symbol, interval)
        specs = [s if isinstance(s, IndicatorSpec) else IndicatorSpec(**s) for s in indicators]

        if not await self.feed.validate_symbol(key.symbol):
            logger.warning(f"✗ Not adding {chart_id}: invalid symbol {key.symbol}")
            return None

        built = [IndicatorRegistry.create(spec.type, **spec.params) for spec in specs]
        for indicator in built:
            indicator.render(surface)

        consumer = await self.coordinator.start_feed(key, self._sink(surface), built)
        chart = Chart(chart_id, surface, consumer)
        self.charts[chart_id] = chart

        logger.info(f"✓ Added {chart!r} with {len(built)} indicators")
        return chart

    async def add_from_config(self, config: ChartConfig, surface: BaseChartSurface) -> Chart | None:
        return await self.add_chart(
            config.id, config.symbol, config.interval, surface, config.indicators
        )

    async def switch_interval(self, chart_id: str, interval: str) -> Chart:
        """
        Move a chart to another interval

        Indicators are torn down and re-rendered so nothing drawn for the old
        interval is left behind, even if the new history comes back empty.
        """
        chart = self._require(chart_id)
        new_key = SubscriptionKey.of(chart.key.symbol, interval)
        if new_key == chart.key:
            return chart

        chart.consumer = await self.coordinator.switch_interval(chart.consumer, interval)
        logger.info(f"Switched {chart_id} to {interval}")
        return chart

    async def remove_chart(self, chart_id: str) -> None:
        chart = self.charts.pop(chart_id, None)
        if chart is None:
            return

        await self.coordinator.stop_feed(chart.key, chart.consumer)
        for indicator in chart.indicators:
            indicator.destroy()
        logger.info(f"Removed {chart!r}")

    async def close(self) -> None:
        for chart_id in list(self.charts):
            await self.remove_chart(chart_id)
        await self.coordinator.close()

    def _require(self, chart_id: str) -> Chart:
        chart = self.charts.get(chart_id)
        if chart is None:
            raise KeyError(f"Unknown chart: {chart_id}")
        return chart

    @staticmethod
    def _sink(surface: BaseChartSurface) -> BaseRenderSink:
        if not isinstance(surface, BaseRenderSink):
            raise TypeError(f"{surface!r} cannot receive candles")
        return surface
