"""
Application Settings - Load from .env + environment

Design Philosophy:
- Runtime knobs (log level, URLs, limits, reconnect policy) → Settings
- Chart board layout (symbols, intervals, indicators) → config/providers/charts.yaml

Uses Pydantic for validation and type safety
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings

    Usage:
        from config.settings import get_settings

        settings = get_settings()
        print(settings.HISTORY_LIMIT)  # 500
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields in .env
    )

    # ============================================
    # ENVIRONMENT
    # ============================================
    ENVIRONMENT: str = Field(default="local", description="Environment: local, dev, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # ============================================
    # BINANCE FEED
    # ============================================
    BINANCE_WS_BASE_URL: str = Field(
        default="wss://stream.binance.com:9443/ws",
        description="Kline stream base URL (stream name is appended)",
    )
    REST_API_TIMEOUT_MS: int = Field(default=10000, description="ccxt request timeout")
    REST_API_ENABLE_RATE_LIMIT: bool = Field(default=True, description="ccxt rate limiter")
    HISTORY_LIMIT: int = Field(default=500, description="Candles fetched per history load")

    # ============================================
    # INDICATORS
    # ============================================
    LIVE_INDICATOR_UPDATES: bool = Field(
        default=False,
        description="Also push update_last() on unclosed ticks (closed bars always recompute)",
    )

    # ============================================
    # RECONNECT (disabled: closed streams must be resubscribed)
    # ============================================
    RECONNECT_ENABLED: bool = Field(default=False)
    RECONNECT_BASE_DELAY: float = Field(default=1.0, description="Seconds")
    RECONNECT_MAX_DELAY: float = Field(default=30.0, description="Seconds")
    RECONNECT_MAX_ATTEMPTS: int = Field(default=5)

    # ============================================
    # CHART BOARD
    # ============================================
    CHARTS_CONFIG: str = Field(
        default="config/providers/charts.yaml", description="Chart board YAML"
    )


# Singleton pattern
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """
    Get application settings (singleton)

    Returns:
        Settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.BINANCE_WS_BASE_URL)
        wss://stream.binance.com:9443/ws
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
