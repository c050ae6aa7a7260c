"""
Feed Client - symbol validation, history batches, multiplexed live streams

Architecture:
    SubscriptionRegistry  → owns one KlineChannel per SubscriptionKey
    KlineChannel          → ordered listeners + at most one kline stream
    FeedClient            → public API (subscribe / unsubscribe / close / fetch)

One stream per key is shared by every listener of that key; every listener
receives the same KlineEvent instance for every frame.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from core.interfaces.market_data import (
    BaseExchangeRestAPI,
    BaseKlineStream,
    ConnectionState,
)
from core.interfaces.observability import BaseObservabilitySink
from core.models.market_data import (
    Candle,
    FeedError,
    FeedErrorKind,
    KlineEvent,
    SubscriptionKey,
)
from core.utils.observability import LoggingObservabilitySink
from services.chart_feed.reconnect import BaseReconnectPolicy, NoReconnect

logger = logging.getLogger(__name__)

Listener = Callable[[KlineEvent], Awaitable[None]]
StreamFactory = Callable[..., BaseKlineStream]


class ListenerHandle:
    """Attachment of one listener to one key's channel"""

    def __init__(self, key: SubscriptionKey, callback: Listener):
        self.key = key
        self.callback = callback
        self.active = True

    def __repr__(self) -> str:
        state = "active" if self.active else "detached"
        return f"ListenerHandle({self.key}, {state})"


class KlineChannel:
    """
    Event channel for one SubscriptionKey

    Delivery is synchronous with respect to the frame: publish() awaits each
    listener in attach order before returning. A listener that raises is
    reported and skipped; the rest still get the event.
    """

    def __init__(self, key: SubscriptionKey, observability: BaseObservabilitySink):
        self.key = key
        self.listeners: list[ListenerHandle] = []
        self.stream: BaseKlineStream | None = None
        self.reconnect_attempts = 0
        self.reconnect_task: asyncio.Task | None = None
        self._observability = observability

    def __len__(self) -> int:
        return len(self.listeners)

    def find(self, callback: Listener) -> ListenerHandle | None:
        for handle in self.listeners:
            if handle.callback == callback:
                return handle
        return None

    def attach(self, callback: Listener) -> ListenerHandle:
        """Attach a listener; attaching the same callback twice is a no-op"""
        existing = self.find(callback)
        if existing is not None:
            return existing

        handle = ListenerHandle(self.key, callback)
        self.listeners.append(handle)
        return handle

    def detach(self, listener: Listener | ListenerHandle) -> bool:
        handle = listener if isinstance(listener, ListenerHandle) else self.find(listener)
        if handle is None or handle not in self.listeners:
            return False

        self.listeners.remove(handle)
        handle.active = False
        return True

    async def publish(self, event: KlineEvent) -> None:
        # Snapshot so attach/detach during delivery cannot skip anyone;
        # handles detached mid-delivery are skipped via `active`.
        for handle in list(self.listeners):
            if not handle.active:
                continue
            try:
                await handle.callback(event)
            except Exception as e:
                self._observability.report(
                    FeedError.from_exception(
                        FeedErrorKind.LISTENER_FAILURE, "listener raised", e, key=self.key
                    )
                )

    async def shutdown(self) -> None:
        """Detach everyone, cancel a pending reconnect, close the stream"""
        for handle in self.listeners:
            handle.active = False
        self.listeners.clear()

        task = self.reconnect_task
        self.reconnect_task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

        stream = self.stream
        self.stream = None
        if stream is not None:
            await stream.close()


class SubscriptionRegistry:
    """
    Owned registry of per-key channels

    Lifecycle: open() → create()/remove() → close_all(). Bound to one
    application session; creating channels on a closed registry is an error.
    """

    def __init__(self):
        self._channels: dict[SubscriptionKey, KlineChannel] = {}
        self._open = False

    def open(self) -> None:
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    def __contains__(self, key: SubscriptionKey) -> bool:
        return key in self._channels

    def __len__(self) -> int:
        return len(self._channels)

    def keys(self) -> list[SubscriptionKey]:
        return list(self._channels)

    def get(self, key: SubscriptionKey) -> KlineChannel | None:
        return self._channels.get(key)

    def create(self, key: SubscriptionKey, observability: BaseObservabilitySink) -> KlineChannel:
        if not self._open:
            raise RuntimeError("Subscription registry is closed")
        if key in self._channels:
            raise ValueError(f"Channel already exists for {key}")

        channel = KlineChannel(key, observability)
        self._channels[key] = channel
        return channel

    def remove(self, key: SubscriptionKey) -> KlineChannel | None:
        return self._channels.pop(key, None)

    async def close_all(self) -> None:
        channels = list(self._channels.values())
        self._channels.clear()
        self._open = False

        for channel in channels:
            await channel.shutdown()

        if channels:
            logger.info(f"✓ Closed {len(channels)} kline channels")


class FeedClient:
    """
    Exchange feed client with multiplexed live subscriptions

    Features:
    - Symbol validation that fails closed
    - History batches that degrade to [] on failure
    - One kline stream per (symbol, interval), shared by all listeners
    - Eager teardown when the last listener leaves
    - Pluggable reconnect policy (default: none)

    Example:
        >>> async with create_feed_client() as feed:
        ...     key = SubscriptionKey.of("BTCUSDT", "1m")
        ...     async def on_tick(event: KlineEvent):
        ...         print(event.candle.close, event.closed)
        ...     await feed.subscribe(key, on_tick)
    """

    def __init__(
        self,
        rest_api: BaseExchangeRestAPI,
        stream_factory: StreamFactory,
        registry: SubscriptionRegistry | None = None,
        observability: BaseObservabilitySink | None = None,
        reconnect_policy: BaseReconnectPolicy | None = None,
    ):
        """
        Initialize feed client

        Args:
            rest_api: REST client for symbols and history
            stream_factory: Callable building a BaseKlineStream from
                            (key, on_event, on_closed, observability)
            registry: Channel registry (a fresh one by default)
            observability: Diagnostics sink (logging by default)
            reconnect_policy: What to do when a stream drops (NoReconnect by default)
        """
        self.rest_api = rest_api
        self.stream_factory = stream_factory
        self.registry = registry or SubscriptionRegistry()
        self.observability = observability or LoggingObservabilitySink()
        self.reconnect_policy = reconnect_policy or NoReconnect()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def open(self) -> "FeedClient":
        self.registry.open()
        return self

    async def close_all(self) -> None:
        """Close every stream and drop every listener"""
        await self.registry.close_all()

    async def aclose(self) -> None:
        await self.close_all()
        await self.rest_api.close()

    async def __aenter__(self) -> "FeedClient":
        return await self.open()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # One-shot REST operations
    # ------------------------------------------------------------------

    async def validate_symbol(self, symbol: str) -> bool:
        """
        Check a symbol against exchange metadata

        Never raises: transport failure returns False.
        """
        valid, error = await self.rest_api.is_valid_symbol(symbol)
        if error is not None:
            self.observability.report(
                FeedError.from_exception(
                    FeedErrorKind.TRANSPORT, f"symbol validation failed for {symbol}", error
                )
            )
            return False

        if not valid:
            self.observability.report(
                FeedError(kind=FeedErrorKind.INVALID_SYMBOL, message=f"unknown symbol {symbol}")
            )
        return valid

    async def fetch_history(self, key: SubscriptionKey, limit: int = 500) -> list[Candle]:
        """
        Fetch the latest `limit` candles for a key

        Returns:
            Candles oldest first, or [] on failure (never partial)
        """
        result = await self.rest_api.fetch_history(key, limit=limit)
        if not result.ok:
            self.observability.report(result.error)
            return []
        return list(result.candles)

    # ------------------------------------------------------------------
    # Live subscriptions
    # ------------------------------------------------------------------

    async def subscribe(self, key: SubscriptionKey, callback: Listener) -> ListenerHandle:
        """
        Register a listener for a key

        The first listener opens the key's stream; later listeners share it.

        Args:
            key: Subscription key
            callback: Async callable receiving each KlineEvent

        Returns:
            Handle usable with unsubscribe()

        Raises:
            RuntimeError: If the client has not been opened
        """
        channel = self.registry.get(key)
        if channel is None:
            channel = self.registry.create(key, self.observability)

        handle = channel.attach(callback)

        if channel.stream is None and channel.reconnect_task is None:
            await self._open_stream(channel)

        logger.debug(f"Subscribed to {key} ({len(channel)} listeners)")
        return handle

    async def unsubscribe(self, key: SubscriptionKey, listener: Listener | ListenerHandle) -> bool:
        """
        Remove a listener; closes the stream when it was the last one

        Returns:
            True if the listener was attached
        """
        channel = self.registry.get(key)
        if channel is None:
            return False

        removed = channel.detach(listener)
        if len(channel) == 0:
            await self.close(key)
        return removed

    async def close(self, key: SubscriptionKey) -> None:
        """Force-close a key regardless of listener count"""
        channel = self.registry.remove(key)
        if channel is None:
            return
        await channel.shutdown()
        logger.info(f"Released {key}")

    def connection_state(self, key: SubscriptionKey) -> ConnectionState:
        channel = self.registry.get(key)
        if channel is None:
            return ConnectionState.IDLE
        if channel.stream is None:
            # Waiting for a reconnect attempt
            return ConnectionState.CLOSED if channel.reconnect_task else ConnectionState.IDLE
        return channel.stream.state

    def has_connection(self, key: SubscriptionKey) -> bool:
        channel = self.registry.get(key)
        return bool(channel and channel.stream and channel.stream.is_active)

    def listener_count(self, key: SubscriptionKey) -> int:
        channel = self.registry.get(key)
        return len(channel) if channel else 0

    # ------------------------------------------------------------------
    # Stream plumbing
    # ------------------------------------------------------------------

    async def _open_stream(self, channel: KlineChannel) -> None:
        stream = self.stream_factory(
            key=channel.key,
            on_event=self._dispatch,
            on_closed=self._handle_stream_closed,
            observability=self.observability,
        )
        channel.stream = stream
        await stream.open()

    async def _dispatch(self, event: KlineEvent) -> None:
        channel = self.registry.get(event.key)
        if channel is None:
            # Late frame for a released key
            return
        channel.reconnect_attempts = 0
        await channel.publish(event)

    async def _handle_stream_closed(self, stream: BaseKlineStream, error: Exception | None) -> None:
        key = stream.key
        channel = self.registry.get(key)
        if channel is None or channel.stream is not stream:
            return

        channel.stream = None
        if error is not None:
            self.observability.report(
                FeedError.from_exception(FeedErrorKind.TRANSPORT, "stream dropped", error, key=key)
            )

        channel.reconnect_attempts += 1
        delay = self.reconnect_policy.next_delay(key, channel.reconnect_attempts)

        if delay is None or len(channel) == 0:
            self.registry.remove(key)
            await channel.shutdown()
            logger.info(f"Released {key} after remote close")
            return

        logger.info(
            f"Reconnecting {key} in {delay:.1f}s (attempt {channel.reconnect_attempts})"
        )
        channel.reconnect_task = asyncio.create_task(self._reconnect(channel, delay))

    async def _reconnect(self, channel: KlineChannel, delay: float) -> None:
        await asyncio.sleep(delay)
        channel.reconnect_task = None
        if self.registry.get(channel.key) is not channel or len(channel) == 0:
            return
        await self._open_stream(channel)
