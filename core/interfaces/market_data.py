"""
Abstract base classes for exchange market data access

- BaseExchangeRestAPI: symbol metadata + historical kline batches
- BaseKlineStream: one live kline connection for one SubscriptionKey
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import Enum

from core.interfaces.observability import BaseObservabilitySink
from core.models.market_data import FetchResult, KlineEvent, SubscriptionKey

EventHandler = Callable[[KlineEvent], Awaitable[None]]
ClosedHandler = Callable[["BaseKlineStream", Exception | None], Awaitable[None]]


class ConnectionState(str, Enum):
    """
    Per-key connection lifecycle

    IDLE → CONNECTING → OPEN → CLOSED. CLOSED is terminal for a stream
    instance; reconnecting means opening a new stream.
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class BaseExchangeRestAPI(ABC):
    """
    Exchange REST API interface

    Implementations must not raise on transport failure: they return an
    explicit result and let the caller decide how to report it.

    Implementations:
    - BinanceRestAPI (providers/binance/rest_api.py)
    """

    def __init__(self, exchange_name: str):
        self.exchange_name = exchange_name

    @abstractmethod
    async def is_valid_symbol(self, symbol: str) -> tuple[bool, Exception | None]:
        """
        Check a symbol against exchange metadata

        Returns:
            (is_valid, transport_error). On transport failure returns
            (False, error).
        """

    @abstractmethod
    async def fetch_history(self, key: SubscriptionKey, limit: int = 500) -> FetchResult:
        """
        Fetch the latest `limit` klines for a key, oldest first

        Returns:
            FetchResult with candles, or an empty result carrying the error
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying HTTP session"""


class BaseKlineStream(ABC):
    """
    One live kline connection bound to one SubscriptionKey

    The stream parses frames itself and hands KlineEvents to `on_event`,
    awaiting each before reading the next frame. When the connection ends
    for any reason other than an explicit close(), `on_closed` is awaited
    with the error (or None for a clean remote close).

    Implementations:
    - BinanceKlineStream (providers/binance/websocket.py)
    """

    def __init__(
        self,
        key: SubscriptionKey,
        on_event: EventHandler,
        on_closed: ClosedHandler,
        observability: BaseObservabilitySink,
    ):
        self.key = key
        self.state = ConnectionState.IDLE
        self._on_event = on_event
        self._on_closed = on_closed
        self._observability = observability
        self._task: asyncio.Task | None = None

    @abstractmethod
    async def open(self) -> None:
        """
        Start connecting

        Moves the stream to CONNECTING and schedules the receive loop. Does
        not wait for the handshake.
        """

    @abstractmethod
    async def close(self) -> None:
        """
        Close the connection

        Safe to call more than once and from inside an `on_event` handler.
        Does not trigger `on_closed`.
        """

    async def wait_closed(self) -> None:
        """Wait until the receive loop has finished"""
        if self._task is not None and self._task is not asyncio.current_task():
            await asyncio.gather(self._task, return_exceptions=True)

    @property
    def is_active(self) -> bool:
        return self.state in (ConnectionState.CONNECTING, ConnectionState.OPEN)
