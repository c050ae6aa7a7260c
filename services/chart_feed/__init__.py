"""
Chart Feed - live candle charts from the Binance kline feed

Components:
1. FeedClient: symbol validation, history batches, multiplexed kline streams
2. HistoryStore + DataCoordinator: merge live ticks into history, drive sinks
3. ChartSession: board of charts with indicators
4. MemoryChart: headless rendering surfaces
"""

from services.chart_feed.coordinator import DataCoordinator, FeedConsumer
from services.chart_feed.feed_client import FeedClient, ListenerHandle, SubscriptionRegistry
from services.chart_feed.history_store import HistoryStore
from services.chart_feed.memory_chart import MemoryChart, MemorySeries, MemoryTimeScale
from services.chart_feed.reconnect import ExponentialBackoff, NoReconnect
from services.chart_feed.session import Chart, ChartSession

__all__ = [
    "FeedClient",
    "ListenerHandle",
    "SubscriptionRegistry",
    "HistoryStore",
    "DataCoordinator",
    "FeedConsumer",
    "ChartSession",
    "Chart",
    "MemoryChart",
    "MemorySeries",
    "MemoryTimeScale",
    "NoReconnect",
    "ExponentialBackoff",
]
