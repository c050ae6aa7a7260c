"""
Binance WebSocket kline stream

Handles:
- One connection per (symbol, interval)
- Kline frame parsing into KlineEvent
- Per-frame error isolation (a bad frame is dropped, the stream lives on)
- Connection lifecycle: IDLE → CONNECTING → OPEN → CLOSED

No reconnect loop here: a stream instance is closed for good once it ends.
Reconnect decisions belong to the FeedClient's reconnect policy.
"""

import asyncio
import json
import logging

from websockets import connect

from config.settings import get_settings
from core.interfaces.market_data import BaseKlineStream, ConnectionState
from core.models.market_data import (
    Candle,
    FeedError,
    FeedErrorKind,
    KlineEvent,
    SubscriptionKey,
)

logger = logging.getLogger(__name__)


def parse_kline_message(key: SubscriptionKey, message: str | bytes) -> KlineEvent | None:
    """
    Parse Binance kline message to KlineEvent

    Binance kline format:
    {
        "e": "kline",
        "E": 1672515782136,        // Event time
        "s": "BTCUSDT",
        "k": {
            "t": 1672515780000,    // Kline open time (ms)
            "o": "0.0010",         // Open
            "h": "0.0025",         // High
            "l": "0.0015",         // Low
            "c": "0.0020",         // Close
            "v": "1000",           // Base asset volume
            "x": false,            // Is this kline closed?
            ...
        }
    }

    Args:
        key: Key the frame arrived on
        message: Raw frame

    Returns:
        KlineEvent, or None for frames without a "k" payload

    Raises:
        ValueError, KeyError, TypeError: malformed frame
    """
    data = json.loads(message)
    if not isinstance(data, dict) or "k" not in data:
        return None

    k = data["k"]
    if not isinstance(k, dict):
        raise TypeError(f"Kline payload must be an object, got {type(k).__name__}")

    closed = k.get("x") is True
    candle = Candle(
        time=int(k["t"]) // 1000,
        open=float(k["o"]),
        high=float(k["h"]),
        low=float(k["l"]),
        close=float(k["c"]),
        volume=float(k["v"]),
        closed=closed,
    )
    return KlineEvent(key=key, candle=candle, closed=closed)


class BinanceKlineStream(BaseKlineStream):
    """
    Binance kline WebSocket for a single key

    WebSocket Documentation:
    https://binance-docs.github.io/apidocs/spot/en/#kline-candlestick-streams
    """

    def __init__(self, key, on_event, on_closed, observability, base_url: str | None = None, connector=connect):
        """
        Initialize kline stream

        Args:
            key: Subscription key
            on_event: Async handler awaited for every parsed event
            on_closed: Async handler awaited when the connection ends on its own
            observability: Sink for malformed frames and transport errors
            base_url: Stream base URL (defaults to settings)
            connector: websockets.connect compatible factory
        """
        super().__init__(key, on_event, on_closed, observability)
        self.base_url = base_url or get_settings().BINANCE_WS_BASE_URL
        self._connector = connector
        self.websocket = None
        self._closing = False

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.key.stream_name}"

    async def open(self) -> None:
        if self.state != ConnectionState.IDLE:
            return
        self.state = ConnectionState.CONNECTING
        logger.info(f"Connecting to Binance kline stream {self.key}...")
        self._task = asyncio.create_task(self._run(), name=f"kline-{self.key}")

    async def _run(self) -> None:
        error: Exception | None = None
        try:
            async with self._connector(self.url) as websocket:
                self.websocket = websocket
                if self._closing:
                    return
                self.state = ConnectionState.OPEN
                logger.info(f"✓ Connected: {self.key}")

                async for message in websocket:
                    await self._handle_frame(message)
                    if self._closing:
                        break

        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e
            if not self._closing:
                logger.error(f"✗ WebSocket error for {self.key}: {e}")
        finally:
            self.websocket = None
            self.state = ConnectionState.CLOSED

        if not self._closing:
            logger.info(f"Closed: {self.key}")
            await self._on_closed(self, error)

    async def _handle_frame(self, message: str | bytes) -> None:
        try:
            event = parse_kline_message(self.key, message)
        except (ValueError, KeyError, TypeError) as e:
            self._observability.report(
                FeedError.from_exception(
                    FeedErrorKind.MALFORMED_MESSAGE, "dropped unparseable frame", e, key=self.key
                )
            )
            return

        if event is None:
            return
        await self._on_event(event)

    async def close(self) -> None:
        """Stop the stream; safe from inside an on_event handler"""
        if self._closing:
            return
        self._closing = True
        self.state = ConnectionState.CLOSED

        if self.websocket is not None:
            try:
                await self.websocket.close()
            except Exception as e:
                logger.warning(f"Error closing socket {self.key}: {e}")

        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        logger.info(f"✓ Kline stream stopped: {self.key}")
