"""
Indicator registry for creating indicators from chart configuration

Factory pattern for indicator creation
"""

from core.interfaces.indicators import BaseIndicator
from domain.indicators.momentum import MACD, RSI
from domain.indicators.moving_averages import EMA
from domain.indicators.ribbon import Ribbon
from domain.indicators.volume import Volume


class IndicatorRegistry:
    """
    Registry for indicator creation

    Provides factory methods for creating indicators
    """

    # Registry of available indicators
    _indicators: dict[str, type[BaseIndicator]] = {
        "ema": EMA,
        "rsi": RSI,
        "macd": MACD,
        "ribbon": Ribbon,
        "volume": Volume,
    }

    @classmethod
    def create(cls, indicator_type: str, **params) -> BaseIndicator:
        """
        Create indicator by type

        Args:
            indicator_type: Indicator type (ema, rsi, macd, ribbon, volume)
            **params: Constructor parameters

        Returns:
            Indicator instance

        Raises:
            ValueError: If indicator type is not found

        Example:
            >>> ema = IndicatorRegistry.create("ema", period=21, color="#f5a623")
            >>> macd = IndicatorRegistry.create("macd", fast_period=12, slow_period=26)
        """
        indicator_class = cls._indicators.get(indicator_type.lower())
        if not indicator_class:
            available = ", ".join(cls._indicators.keys())
            raise ValueError(f"Unknown indicator: {indicator_type}. Available: {available}")

        return indicator_class(**params)

    @classmethod
    def list_indicators(cls) -> list[str]:
        """
        List all available indicators

        Example:
            >>> IndicatorRegistry.list_indicators()
            ['ema', 'macd', 'ribbon', 'rsi', 'volume']
        """
        return sorted(cls._indicators.keys())
