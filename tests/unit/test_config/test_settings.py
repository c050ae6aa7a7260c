"""
Unit tests for settings and the chart board loader
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.loader import DEFAULT_SYMBOLS, ChartConfig, default_board, load_chart_board
from config.settings import Settings, get_settings
from core.models.market_data import SubscriptionKey

REPO_BOARD = Path(__file__).parents[3] / "config" / "providers" / "charts.yaml"


@pytest.mark.unit
class TestSettings:
    """Test defaults and environment overrides"""

    def test_defaults(self):
        settings = Settings()

        assert settings.BINANCE_WS_BASE_URL == "wss://stream.binance.com:9443/ws"
        assert settings.HISTORY_LIMIT == 500
        assert settings.LIVE_INDICATOR_UPDATES is False
        assert settings.RECONNECT_ENABLED is False
        assert settings.RECONNECT_MAX_ATTEMPTS == 5
        assert settings.REST_API_ENABLE_RATE_LIMIT is True
        assert settings.CHARTS_CONFIG == "config/providers/charts.yaml"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("HISTORY_LIMIT", "200")
        monkeypatch.setenv("RECONNECT_ENABLED", "true")

        settings = Settings()

        assert settings.HISTORY_LIMIT == 200
        assert settings.RECONNECT_ENABLED is True

    def test_singleton(self):
        assert get_settings() is get_settings()


@pytest.mark.unit
class TestChartBoardLoader:
    """Test YAML board loading and validation"""

    def test_repository_board(self):
        """Test the shipped charts.yaml is valid"""
        charts = load_chart_board(str(REPO_BOARD))

        assert [c.id for c in charts] == ["chart-btc", "chart-eth", "chart-sol", "chart-bnb"]
        assert charts[0].key == SubscriptionKey.of("BTCUSDT", "1m")
        assert [i.type for i in charts[0].indicators] == ["ema", "ema", "rsi", "macd"]

    def test_missing_file_falls_back(self, tmp_path):
        charts = load_chart_board(str(tmp_path / "missing.yaml"))

        assert charts == default_board()
        assert [c.symbol for c in charts] == DEFAULT_SYMBOLS
        assert all(c.interval == "1m" for c in charts)

    def test_custom_board(self, tmp_path):
        path = tmp_path / "charts.yaml"
        path.write_text(
            "charts:\n"
            "  - id: main\n"
            "    symbol: ethusdt\n"
            "    interval: 4h\n"
            "    indicators:\n"
            "      - type: ema\n"
            "        params: {period: 50}\n"
        )

        charts = load_chart_board(str(path))

        assert charts[0].symbol == "ETHUSDT"
        assert charts[0].indicators[0].params == {"period": 50}

    def test_duplicate_ids_rejected(self, tmp_path):
        path = tmp_path / "charts.yaml"
        path.write_text(
            "charts:\n"
            "  - {id: a, symbol: BTCUSDT}\n"
            "  - {id: a, symbol: ETHUSDT}\n"
        )

        with pytest.raises(ValidationError):
            load_chart_board(str(path))

    def test_bad_interval_rejected_on_key(self):
        config = ChartConfig(id="x", symbol="BTCUSDT", interval="7m")

        with pytest.raises(ValueError):
            config.key
