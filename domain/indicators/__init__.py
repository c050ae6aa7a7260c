"""
Technical indicators module

Exports:
- BaseIndicator (core/interfaces/indicators.py)
- Moving averages: EMA, ema_series, sma_seeded_ema
- Momentum: RSI, MACD
- Ribbon (23-line EMA ribbon), Volume
- TimeScaleLink (sub-panel pan sync)
- Registry: IndicatorRegistry
"""

from core.interfaces.indicators import BaseIndicator
from domain.indicators.momentum import MACD, RSI, MACDResult
from domain.indicators.moving_averages import EMA, ema_series, sma_seeded_ema
from domain.indicators.panels import TimeScaleLink
from domain.indicators.registry import IndicatorRegistry
from domain.indicators.ribbon import RIBBON_PERIODS, Ribbon, Trend
from domain.indicators.volume import Volume

__all__ = [
    "BaseIndicator",
    "EMA",
    "ema_series",
    "sma_seeded_ema",
    "RSI",
    "MACD",
    "MACDResult",
    "Ribbon",
    "RIBBON_PERIODS",
    "Trend",
    "Volume",
    "TimeScaleLink",
    "IndicatorRegistry",
]
