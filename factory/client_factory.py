"""
Client factory - Auto-create feed clients based on configuration

Dependency injection pattern: services ask the factory, never the providers
"""

import functools
import logging

from config.settings import get_settings
from core.interfaces.market_data import BaseExchangeRestAPI
from core.interfaces.observability import BaseObservabilitySink
from services.chart_feed.feed_client import FeedClient, StreamFactory
from services.chart_feed.reconnect import BaseReconnectPolicy, ExponentialBackoff, NoReconnect

logger = logging.getLogger(__name__)


def create_exchange_rest_api(exchange_name: str = "binance") -> BaseExchangeRestAPI:
    """
    Factory method for creating exchange REST API clients.

    Args:
        exchange_name: Exchange identifier (only "binance" is supported)

    Returns:
        BaseExchangeRestAPI implementation for the specified exchange

    Examples:
        >>> api = create_exchange_rest_api("binance")
        >>> result = await api.fetch_history(SubscriptionKey.of("BTCUSDT", "1m"), limit=100)
        >>> await api.close()

    Raises:
        ValueError: If exchange_name is not supported
    """
    exchange_lower = exchange_name.lower()

    if exchange_lower == "binance":
        from providers.binance.rest_api import BinanceRestAPI

        logger.info("✓ Creating BinanceRestAPI")
        return BinanceRestAPI()

    raise ValueError(f"Unknown exchange: {exchange_name}. Supported: binance")


def create_stream_factory(exchange_name: str = "binance", base_url: str | None = None) -> StreamFactory:
    """
    Factory for per-key kline streams

    Returns:
        Callable accepting (key, on_event, on_closed, observability) and
        returning an unopened BaseKlineStream
    """
    exchange_lower = exchange_name.lower()

    if exchange_lower == "binance":
        from providers.binance.websocket import BinanceKlineStream

        return functools.partial(BinanceKlineStream, base_url=base_url)

    raise ValueError(f"Unknown exchange: {exchange_name}. Supported: binance")


def create_reconnect_policy() -> BaseReconnectPolicy:
    """
    Create reconnect policy based on RECONNECT_* settings

    Examples:
        >>> # .env: RECONNECT_ENABLED=false (default)
        >>> create_reconnect_policy()  # Returns NoReconnect
        >>>
        >>> # .env: RECONNECT_ENABLED=true
        >>> create_reconnect_policy()  # Returns ExponentialBackoff
    """
    settings = get_settings()

    if not settings.RECONNECT_ENABLED:
        return NoReconnect()

    logger.info(
        f"✓ Reconnect enabled (base={settings.RECONNECT_BASE_DELAY}s, "
        f"max={settings.RECONNECT_MAX_DELAY}s, attempts={settings.RECONNECT_MAX_ATTEMPTS})"
    )
    return ExponentialBackoff(
        base_delay=settings.RECONNECT_BASE_DELAY,
        max_delay=settings.RECONNECT_MAX_DELAY,
        max_attempts=settings.RECONNECT_MAX_ATTEMPTS,
    )


def create_feed_client(
    exchange_name: str = "binance",
    observability: BaseObservabilitySink | None = None,
) -> FeedClient:
    """
    Create a fully wired FeedClient

    The client still has to be opened (`async with` or `await feed.open()`).

    Example:
        >>> async with create_feed_client() as feed:
        ...     await feed.subscribe(SubscriptionKey.of("BTCUSDT", "1m"), on_tick)
    """
    return FeedClient(
        rest_api=create_exchange_rest_api(exchange_name),
        stream_factory=create_stream_factory(exchange_name),
        observability=observability,
        reconnect_policy=create_reconnect_policy(),
    )
