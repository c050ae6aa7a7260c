"""
Unit tests for BinanceRestAPI

Tests symbol validation and history batches using mocked ccxt responses.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from core.models.market_data import Candle, FeedErrorKind, SubscriptionKey
from providers.binance.rest_api import BinanceRestAPI

MARKETS = {
    "BTC/USDT": {"id": "BTCUSDT", "symbol": "BTC/USDT"},
    "ETH/USDT": {"id": "ETHUSDT", "symbol": "ETH/USDT"},
}


@pytest.fixture
def mock_ccxt_binance():
    """Mock ccxt.binance client"""
    with patch("providers.binance.rest_api.ccxt.binance") as mock:
        client = MagicMock()
        client.load_markets = AsyncMock(return_value=MARKETS)
        client.fetch_ohlcv = AsyncMock()
        client.close = AsyncMock()
        mock.return_value = client
        yield client


def create_mock_ohlcv_data(count=5, start_timestamp_ms=1704067200000):
    """
    Create mock OHLCV data from ccxt.

    Format: [[timestamp_ms, open, high, low, close, volume], ...]
    """
    data = []
    for i in range(count):
        timestamp = start_timestamp_ms + (i * 60000)  # 1 minute apart
        data.append(
            [
                timestamp,
                50000.0 + i * 10,  # open
                50100.0 + i * 10,  # high
                49900.0 + i * 10,  # low
                50050.0 + i * 10,  # close
                100.0 + i,  # volume
            ]
        )
    return data


@pytest.mark.unit
class TestBinanceRestAPI:
    """Test Binance REST API client"""

    def test_client_configured_from_settings(self, monkeypatch):
        monkeypatch.setenv("REST_API_TIMEOUT_MS", "2500")
        with patch("providers.binance.rest_api.ccxt.binance") as mock:
            BinanceRestAPI()

        mock.assert_called_once_with({"enableRateLimit": True, "timeout": 2500})

    @pytest.mark.asyncio
    async def test_is_valid_symbol(self, mock_ccxt_binance):
        """Test lookup by exchange market id, any case"""
        api = BinanceRestAPI()

        assert await api.is_valid_symbol("btcusdt") == (True, None)
        assert await api.is_valid_symbol("XRPUSDT") == (False, None)

    @pytest.mark.asyncio
    async def test_is_valid_symbol_transport_error(self, mock_ccxt_binance):
        """Test transport failure returns (False, error)"""
        error = ConnectionError("exchange unreachable")
        mock_ccxt_binance.load_markets.side_effect = error
        api = BinanceRestAPI()

        assert await api.is_valid_symbol("BTCUSDT") == (False, error)

    @pytest.mark.asyncio
    async def test_fetch_history_success(self, mock_ccxt_binance):
        """Test fetch_history with successful API response"""
        mock_ccxt_binance.fetch_ohlcv.return_value = create_mock_ohlcv_data(count=5)
        api = BinanceRestAPI()
        key = SubscriptionKey.of("BTCUSDT", "1m")

        result = await api.fetch_history(key, limit=5)

        # Market id resolved to the ccxt unified symbol
        mock_ccxt_binance.fetch_ohlcv.assert_called_once_with("BTC/USDT", "1m", limit=5)

        assert result.ok
        assert len(result.candles) == 5
        assert all(isinstance(c, Candle) for c in result.candles)

        first = result.candles[0]
        assert first.time == 1704067200
        assert first.open == 50000.0
        assert first.high == 50100.0
        assert first.low == 49900.0
        assert first.close == 50050.0
        assert first.volume == 100.0
        assert first.closed is True

        assert [c.time for c in result.candles] == [1704067200 + i * 60 for i in range(5)]

    @pytest.mark.asyncio
    async def test_fetch_history_unknown_market_passes_symbol(self, mock_ccxt_binance):
        mock_ccxt_binance.fetch_ohlcv.return_value = []
        api = BinanceRestAPI()

        result = await api.fetch_history(SubscriptionKey.of("SOLUSDT", "5m"))

        mock_ccxt_binance.fetch_ohlcv.assert_called_once_with("SOLUSDT", "5m", limit=500)
        assert result.ok
        assert result.candles == []

    @pytest.mark.asyncio
    async def test_fetch_history_error(self, mock_ccxt_binance):
        """Test API failure gives an empty result carrying a transport error"""
        mock_ccxt_binance.fetch_ohlcv.side_effect = Exception("API Error")
        api = BinanceRestAPI()
        key = SubscriptionKey.of("BTCUSDT", "1m")

        result = await api.fetch_history(key)

        assert not result.ok
        assert result.candles == []
        assert result.error.kind == FeedErrorKind.TRANSPORT
        assert result.error.key == key
        assert "API Error" in result.error.detail

    @pytest.mark.asyncio
    async def test_fetch_history_bad_row(self, mock_ccxt_binance):
        """Test a malformed row fails the whole batch (never partial)"""
        rows = create_mock_ohlcv_data(count=3)
        rows[1] = [rows[1][0], None]
        mock_ccxt_binance.fetch_ohlcv.return_value = rows
        api = BinanceRestAPI()

        result = await api.fetch_history(SubscriptionKey.of("BTCUSDT", "1m"))

        assert not result.ok
        assert result.candles == []

    @pytest.mark.asyncio
    async def test_close(self, mock_ccxt_binance):
        """Test close() closes ccxt client"""
        api = BinanceRestAPI()

        await api.close()

        mock_ccxt_binance.close.assert_called_once()
