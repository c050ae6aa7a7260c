"""
Binance REST API client for symbol metadata and historical klines.

Uses ccxt library for unified exchange interface.
"""

import logging

import ccxt.async_support as ccxt

from config.settings import get_settings
from core.interfaces.market_data import BaseExchangeRestAPI
from core.models.market_data import (
    Candle,
    FeedError,
    FeedErrorKind,
    FetchResult,
    SubscriptionKey,
)

logger = logging.getLogger(__name__)


class BinanceRestAPI(BaseExchangeRestAPI):
    """
    Binance REST API client

    Uses ccxt library for:
    - Market metadata (symbol validation)
    - Kline batches (history seeding)
    - Built-in rate limiting

    Failures are returned, not raised: callers get (False, error) or an
    empty FetchResult carrying a FeedError.
    """

    def __init__(self):
        super().__init__(exchange_name="binance")
        settings = get_settings()

        self.client = ccxt.binance(
            {
                "enableRateLimit": settings.REST_API_ENABLE_RATE_LIMIT,
                "timeout": settings.REST_API_TIMEOUT_MS,
            }
        )
        logger.info("BinanceRestAPI initialized")

    async def _find_market(self, symbol: str) -> dict | None:
        """Resolve an exchange market id (BTCUSDT) to its ccxt market"""
        markets = await self.client.load_markets()
        wanted = symbol.upper()
        for market in markets.values():
            if str(market.get("id", "")).upper() == wanted:
                return market
        return None

    async def is_valid_symbol(self, symbol: str) -> tuple[bool, Exception | None]:
        """
        Check a symbol against Binance exchange info

        Args:
            symbol: Exchange symbol, any case (e.g., "btcusdt")

        Returns:
            (True, None) if listed, (False, None) if unknown,
            (False, error) on transport failure
        """
        try:
            market = await self._find_market(symbol)
        except Exception as e:
            logger.error(f"Symbol validation failed for {symbol}: {e}")
            return False, e

        return market is not None, None

    async def fetch_history(self, key: SubscriptionKey, limit: int = 500) -> FetchResult:
        """
        Fetch the latest klines for a symbol/interval.

        Args:
            key: Subscription key (symbol + interval)
            limit: Number of latest candles (default 500)

        Returns:
            FetchResult with candles oldest first (time in seconds), or an
            empty result with a transport error
        """
        try:
            market = await self._find_market(key.symbol)
            symbol = market["symbol"] if market else key.symbol

            ohlcv = await self.client.fetch_ohlcv(symbol, key.interval, limit=limit)
            candles = [Candle.from_row(row) for row in ohlcv]

            logger.debug(f"Fetched {len(candles)} klines for {key}")
            return FetchResult(candles=candles)

        except Exception as e:
            logger.error(f"Failed to fetch klines for {key}: {e}")
            return FetchResult(
                error=FeedError.from_exception(
                    FeedErrorKind.TRANSPORT, "history fetch failed", e, key=key
                )
            )

    async def close(self) -> None:
        """Close ccxt client"""
        await self.client.close()
        logger.info("BinanceRestAPI closed")
