"""Models module - Pydantic data models"""

from .chart import EMAConfig, LogicalRange, MACDConfig, RSIConfig, SeriesPoint
from .market_data import (
    SUPPORTED_INTERVALS,
    Candle,
    FeedError,
    FeedErrorKind,
    FetchResult,
    KlineEvent,
    SubscriptionKey,
)

__all__ = [
    "SUPPORTED_INTERVALS",
    "Candle",
    "SubscriptionKey",
    "KlineEvent",
    "FeedError",
    "FeedErrorKind",
    "FetchResult",
    "SeriesPoint",
    "LogicalRange",
    "EMAConfig",
    "RSIConfig",
    "MACDConfig",
]
