"""
Test doubles shared by the unit tests

- make_candle / make_candles: candle builders (time in seconds)
- kline_frame: raw Binance kline frame
- FakeRestAPI: in-memory BaseExchangeRestAPI
- FakeConnector / FakeWebSocket: websockets.connect stand-in driven from the test
- wait_for: poll the event loop until a condition holds
"""

import asyncio
import json

from core.interfaces.market_data import BaseExchangeRestAPI
from core.models.market_data import (
    Candle,
    FeedError,
    FeedErrorKind,
    FetchResult,
    SubscriptionKey,
)

START_TIME = 1_700_000_040  # aligned to the minute


def make_candle(close: float, index: int = 0, *, step: int = 60, open_: float | None = None,
                volume: float = 100.0, closed: bool = True) -> Candle:
    """Helper to create test candle with minimal fields"""
    open_price = close if open_ is None else open_
    return Candle(
        time=START_TIME + index * step,
        open=open_price,
        high=max(open_price, close),
        low=min(open_price, close),
        close=close,
        volume=volume,
        closed=closed,
    )


def make_candles(closes, step: int = 60) -> list[Candle]:
    return [make_candle(c, i, step=step) for i, c in enumerate(closes)]


def kline_frame(time_s: int, close: float, closed: bool = False, volume: float = 10.0,
                open_: float | None = None, symbol: str = "BTCUSDT") -> str:
    """Raw Binance kline frame (numbers as strings, time in ms)"""
    open_price = close if open_ is None else open_
    return json.dumps(
        {
            "e": "kline",
            "E": time_s * 1000 + 500,
            "s": symbol,
            "k": {
                "t": time_s * 1000,
                "o": str(open_price),
                "h": str(max(open_price, close)),
                "l": str(min(open_price, close)),
                "c": str(close),
                "v": str(volume),
                "x": closed,
            },
        }
    )


async def wait_for(predicate, timeout: float = 1.0) -> None:
    """Yield to the event loop until predicate() is true"""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)


class FakeRestAPI(BaseExchangeRestAPI):
    """REST API backed by dicts; set `fail_with` to simulate transport failure"""

    def __init__(self, symbols=("BTCUSDT", "ETHUSDT", "SOLUSDT", "BNBUSDT"), history=None):
        super().__init__(exchange_name="fake")
        self.symbols = set(symbols)
        self.history: dict[SubscriptionKey, list[Candle]] = dict(history or {})
        self.fail_with: Exception | None = None
        self.fetch_calls: list[tuple[SubscriptionKey, int]] = []
        self.closed = False

    async def is_valid_symbol(self, symbol: str) -> tuple[bool, Exception | None]:
        if self.fail_with is not None:
            return False, self.fail_with
        return symbol.upper() in self.symbols, None

    async def fetch_history(self, key: SubscriptionKey, limit: int = 500) -> FetchResult:
        self.fetch_calls.append((key, limit))
        if self.fail_with is not None:
            return FetchResult(
                error=FeedError.from_exception(
                    FeedErrorKind.TRANSPORT, "history fetch failed", self.fail_with, key=key
                )
            )
        return FetchResult(candles=self.history.get(key, [])[-limit:])

    async def close(self) -> None:
        self.closed = True


_END = object()


class FakeWebSocket:
    """
    Async-iterable socket fed through a queue

    `await ws.queue.join()` returns once every pushed frame has been fully
    handled by the stream (the next read marks the previous frame done).
    """

    def __init__(self, url: str):
        self.url = url
        self.queue: asyncio.Queue = asyncio.Queue()
        self.closed = False
        self._pending = False

    def push(self, frame) -> None:
        self.queue.put_nowait(frame)

    def drop(self) -> None:
        """Server closes the connection cleanly"""
        self.queue.put_nowait(_END)

    def fail(self, exc: Exception) -> None:
        """Connection breaks with an error"""
        self.queue.put_nowait(exc)

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._mark_done()
        self.queue.put_nowait(_END)

    def _mark_done(self) -> None:
        if self._pending:
            self._pending = False
            self.queue.task_done()

    def __aiter__(self):
        return self

    async def __anext__(self):
        self._mark_done()
        item = await self.queue.get()
        if item is _END:
            self.queue.task_done()
            raise StopAsyncIteration
        if isinstance(item, Exception):
            self.queue.task_done()
            raise item
        self._pending = True
        return item


class _FakeConnection:
    def __init__(self, connector: "FakeConnector", url: str):
        self.connector = connector
        self.url = url
        self.websocket: FakeWebSocket | None = None

    async def __aenter__(self) -> FakeWebSocket:
        if self.connector.error is not None:
            raise self.connector.error
        self.websocket = FakeWebSocket(self.url)
        self.connector.sockets.append(self.websocket)
        return self.websocket

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if self.websocket is not None:
            self.websocket.closed = True
        return False


class FakeConnector:
    """websockets.connect replacement recording every URL it is asked for"""

    def __init__(self):
        self.urls: list[str] = []
        self.sockets: list[FakeWebSocket] = []
        self.error: Exception | None = None

    def __call__(self, url: str) -> _FakeConnection:
        self.urls.append(url)
        return _FakeConnection(self, url)

    def socket_for(self, key: SubscriptionKey) -> FakeWebSocket:
        matches = [ws for ws in self.sockets if ws.url.endswith("/" + key.stream_name)]
        assert matches, f"no socket opened for {key}"
        return matches[-1]

    async def connected(self, count: int = 1) -> None:
        await wait_for(lambda: len(self.sockets) >= count)
