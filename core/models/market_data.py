"""
Market data models

Pydantic models for the live chart feed:
- Candle: OHLCV bar with exchange "closed" flag
- SubscriptionKey: (symbol, interval) identity for stream multiplexing
- KlineEvent: parsed live tick delivered to listeners
- FeedError / FetchResult: explicit error reporting for feed operations
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Binance kline interval literals ("1M" is one month, "1m" one minute)
SUPPORTED_INTERVALS = (
    "1m",
    "3m",
    "5m",
    "15m",
    "30m",
    "1h",
    "2h",
    "4h",
    "6h",
    "8h",
    "12h",
    "1d",
    "3d",
    "1w",
    "1M",
)


class Candle(BaseModel):
    """
    OHLCV candlestick

    Historical rows carry no closed flag from the exchange, so they default
    to closed. Live ticks set it from the kline "x" field.
    """

    model_config = ConfigDict(frozen=True)

    time: int = Field(description="Candle open time (unix seconds)")
    open: float = Field(description="Opening price")
    high: float = Field(description="Highest price in interval")
    low: float = Field(description="Lowest price in interval")
    close: float = Field(description="Closing price (last price while open)")
    volume: float = Field(description="Base asset volume")
    closed: bool = Field(default=True, description="Interval has finalized")

    @classmethod
    def from_row(cls, row: list) -> "Candle":
        """
        Build a closed candle from a REST kline row

        Row format: [openTime_ms, open, high, low, close, volume, ...]
        Numeric fields may be strings (raw Binance) or floats (ccxt).
        """
        return cls(
            time=int(row[0]) // 1000,
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
        )


class SubscriptionKey(BaseModel):
    """
    Identity under which live listeners and connections are multiplexed

    Symbol is upper-cased; interval must be an exchange literal.

    Example:
        >>> key = SubscriptionKey(symbol="btcusdt", interval="1m")
        >>> str(key)
        'BTCUSDT-1m'
        >>> key.stream_name
        'btcusdt@kline_1m'
    """

    model_config = ConfigDict(frozen=True)

    symbol: str = Field(description="Trading pair in exchange format (BTCUSDT)")
    interval: str = Field(description="Kline interval literal (1m, 5m, 1h, ...)")

    @field_validator("symbol")
    @classmethod
    def normalize_symbol(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("Symbol cannot be empty")
        return v

    @field_validator("interval")
    @classmethod
    def interval_supported(cls, v: str) -> str:
        v = v.strip()
        if v not in SUPPORTED_INTERVALS:
            raise ValueError(
                f"Unsupported interval: {v}. Supported: {', '.join(SUPPORTED_INTERVALS)}"
            )
        return v

    @classmethod
    def of(cls, symbol: str, interval: str) -> "SubscriptionKey":
        """Shorthand constructor"""
        return cls(symbol=symbol, interval=interval)

    @property
    def stream_name(self) -> str:
        """Binance stream name for this key"""
        return f"{self.symbol.lower()}@kline_{self.interval}"

    def __str__(self) -> str:
        return f"{self.symbol}-{self.interval}"


class KlineEvent(BaseModel):
    """
    Parsed live kline tick

    One immutable instance is shared by every listener of a key.
    """

    model_config = ConfigDict(frozen=True)

    key: SubscriptionKey
    candle: Candle
    closed: bool = Field(description="Authoritative 'bar closed' flag (kline x)")


class FeedErrorKind(str, Enum):
    """Failure taxonomy of the feed pipeline"""

    TRANSPORT = "transport"
    MALFORMED_MESSAGE = "malformed_message"
    INVALID_SYMBOL = "invalid_symbol"
    LISTENER_FAILURE = "listener_failure"
    SINK_FAILURE = "sink_failure"


class FeedError(BaseModel):
    """Diagnostic record handed to the observability sink"""

    model_config = ConfigDict(frozen=True)

    kind: FeedErrorKind
    message: str
    key: SubscriptionKey | None = None
    detail: str | None = Field(default=None, description="repr() of the underlying exception")

    @classmethod
    def from_exception(
        cls,
        kind: FeedErrorKind,
        message: str,
        exc: BaseException,
        key: SubscriptionKey | None = None,
    ) -> "FeedError":
        return cls(kind=kind, message=message, key=key, detail=repr(exc))


class FetchResult(BaseModel):
    """
    Result of a one-shot batch fetch

    Either a (possibly empty) list of candles, or an empty list plus the error
    that caused it. Never partial.
    """

    candles: list[Candle] = Field(default_factory=list)
    error: FeedError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
