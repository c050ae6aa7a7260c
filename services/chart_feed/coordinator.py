"""
Data Coordinator - wires the Feed Client into the History Store and fans
merged candles out to render sinks and indicators

Flow per live tick:
    KlineEvent → HistoryStore.merge → sink.handle_data_update(candle)
               → (closed bar) indicator.update(snapshot) for every indicator
"""

import asyncio
import logging
from collections.abc import Callable, Iterable

from config.settings import get_settings
from core.interfaces.indicators import BaseIndicator
from core.interfaces.rendering import BaseRenderSink
from core.models.market_data import (
    Candle,
    FeedError,
    FeedErrorKind,
    KlineEvent,
    SubscriptionKey,
)
from services.chart_feed.feed_client import FeedClient, ListenerHandle
from services.chart_feed.history_store import HistoryStore

logger = logging.getLogger(__name__)


class FeedConsumer:
    """A render sink plus the indicators drawn alongside it, bound to one key"""

    def __init__(self, key: SubscriptionKey, sink: BaseRenderSink, indicators: Iterable[BaseIndicator] = ()):
        self.key = key
        self.sink = sink
        self.indicators: list[BaseIndicator] = list(indicators)

    def __repr__(self) -> str:
        return f"FeedConsumer({self.key}, indicators={self.indicators})"


class DataCoordinator:
    """
    Owns candle history per key and drives sinks/indicators from live ticks

    Several consumers may watch the same key: they share one history and one
    feed subscription.

    Example:
        >>> coordinator = DataCoordinator(feed)
        >>> consumer = await coordinator.start_feed(key, chart, [EMA(period=21)])
        >>> ...
        >>> consumer = await coordinator.switch_interval(consumer, "5m")
        >>> await coordinator.stop_feed(consumer.key)
    """

    def __init__(
        self,
        feed: FeedClient,
        store: HistoryStore | None = None,
        history_limit: int | None = None,
        live_indicator_updates: bool | None = None,
    ):
        settings = get_settings()
        self.feed = feed
        self.store = store or HistoryStore()
        self.history_limit = history_limit or settings.HISTORY_LIMIT
        self.live_indicator_updates = (
            settings.LIVE_INDICATOR_UPDATES
            if live_indicator_updates is None
            else live_indicator_updates
        )

        self._consumers: dict[SubscriptionKey, list[FeedConsumer]] = {}
        self._handles: dict[SubscriptionKey, ListenerHandle] = {}
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    async def load_history(self, key: SubscriptionKey) -> list[Candle]:
        """Fetch a fresh batch and overwrite the stored history for `key`"""
        candles = await self.feed.fetch_history(key, limit=self.history_limit)
        self.store.replace(key, candles)
        logger.info(f"Loaded {len(candles)} candles for {key}")
        return candles

    def snapshot(self, key: SubscriptionKey) -> tuple[Candle, ...]:
        return self.store.snapshot(key)

    # ------------------------------------------------------------------
    # Live ticks
    # ------------------------------------------------------------------

    async def on_tick(self, event: KlineEvent) -> None:
        """
        Merge a live tick and notify consumers

        Indicators are recomputed only when the tick closes its bar (or
        incrementally via update_last when live updates are enabled).
        """
        key = event.key
        consumers = list(self._consumers.get(key, ()))
        if not consumers:
            return

        candle = event.candle
        if not self.store.merge(key, candle):
            return

        for consumer in consumers:
            self._guard(consumer, "render sink update", consumer.sink.handle_data_update, candle)

        if event.closed:
            history = self.store.snapshot(key)
            for consumer in consumers:
                for indicator in list(consumer.indicators):
                    self._guard(consumer, f"{indicator!r} update", indicator.update, history)

        elif self.live_indicator_updates:
            history = self.store.snapshot(key)
            for consumer in consumers:
                for indicator in list(consumer.indicators):
                    self._guard(
                        consumer, f"{indicator!r} update_last", indicator.update_last, candle, history
                    )

    # ------------------------------------------------------------------
    # Feed lifecycle
    # ------------------------------------------------------------------

    async def start_feed(
        self,
        key: SubscriptionKey,
        sink: BaseRenderSink,
        indicators: Iterable[BaseIndicator] = (),
    ) -> FeedConsumer:
        """
        Load history, seed the sink and indicators, then go live

        A consumer joining a key that is already live is seeded from the
        stored history without refetching. If the key's stream was released
        underneath us (remote close), every consumer is reseeded from a fresh
        fetch and the key is resubscribed.

        Returns:
            The consumer handle (pass it to stop_feed / switch_interval)
        """
        consumer = FeedConsumer(key, sink, indicators)

        async with self._lock:
            if self.is_live(key):
                self._consumers[key].append(consumer)
                self._seed(consumer, self.store.snapshot(key))
                logger.info(f"Joined live feed {key} ({len(self._consumers[key])} consumers)")
                return consumer

            consumers = self._consumers.pop(key, [])
            if consumers:
                logger.warning(f"Feed {key} was released remotely, resubscribing")
            await self._go_live(key, [*consumers, consumer])
            logger.info(f"✓ Feed started: {key}")

        return consumer

    async def stop_feed(self, key: SubscriptionKey, consumer: FeedConsumer | None = None) -> None:
        """
        Stop one consumer, or every consumer of `key`

        When no consumer remains the subscription is dropped and the stored
        history discarded.
        """
        async with self._lock:
            consumers = self._consumers.get(key)
            if not consumers:
                logger.info(f"No active feed to stop for {key}")
                return

            if consumer is not None:
                if consumer in consumers:
                    consumers.remove(consumer)
                if consumers:
                    return

            del self._consumers[key]
            handle = self._handles.pop(key, None)
            if handle is not None:
                await self.feed.unsubscribe(key, handle)
            self.store.discard(key)

        logger.info(f"Feed stopped: {key}")

    async def switch_interval(self, consumer: FeedConsumer, interval: str) -> FeedConsumer:
        """
        stop_feed(old) then start_feed(new) with the same sink and indicators

        Rendered indicators are torn down and re-rendered on their surface so
        nothing drawn for the old interval survives, even when the new
        history is empty or shorter than an indicator's period.
        """
        new_key = SubscriptionKey.of(consumer.key.symbol, interval)
        await self.stop_feed(consumer.key, consumer)

        for indicator in consumer.indicators:
            surface = indicator.surface
            if surface is None:
                continue
            indicator.destroy()
            indicator.render(surface)

        return await self.start_feed(new_key, consumer.sink, consumer.indicators)

    async def close(self) -> None:
        for key in list(self._consumers):
            await self.stop_feed(key)

    def is_live(self, key: SubscriptionKey) -> bool:
        """True while `key` has consumers and its feed listener is still attached"""
        handle = self._handles.get(key)
        return key in self._consumers and handle is not None and handle.active

    def consumers(self, key: SubscriptionKey) -> tuple[FeedConsumer, ...]:
        return tuple(self._consumers.get(key, ()))

    # ------------------------------------------------------------------
    # Indicators
    # ------------------------------------------------------------------

    def attach_indicator(self, consumer: FeedConsumer, indicator: BaseIndicator) -> None:
        """Add an (already rendered) indicator and seed it from current history"""
        consumer.indicators.append(indicator)
        self._guard(consumer, f"{indicator!r} update", indicator.update, self.store.snapshot(consumer.key))

    def detach_indicator(self, consumer: FeedConsumer, indicator: BaseIndicator) -> None:
        if indicator in consumer.indicators:
            consumer.indicators.remove(indicator)
        indicator.destroy()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _seed(self, consumer: FeedConsumer, history: tuple[Candle, ...]) -> None:
        self._guard(consumer, "render sink set_data", consumer.sink.set_data, history)
        for indicator in consumer.indicators:
            self._guard(consumer, f"{indicator!r} update", indicator.update, history)

    def _guard(self, consumer: FeedConsumer, what: str, fn: Callable, *args) -> None:
        try:
            fn(*args)
        except Exception as e:
            self.feed.observability.report(
                FeedError.from_exception(
                    FeedErrorKind.SINK_FAILURE, f"{what} failed", e, key=consumer.key
                )
            )

    async def _go_live(self, key: SubscriptionKey, consumers: list[FeedConsumer]) -> None:
        """Fetch history, seed `consumers` and subscribe; rolls back if subscribe fails"""
        candles = tuple(await self.load_history(key))
        self._consumers[key] = consumers
        for consumer in consumers:
            self._seed(consumer, candles)

        try:
            self._handles[key] = await self.feed.subscribe(key, self.on_tick)
        except Exception:
            self._consumers.pop(key, None)
            self._handles.pop(key, None)
            self.store.discard(key)
            raise
