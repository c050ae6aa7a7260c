"""Interfaces module - Abstract base classes for feed, indicators and rendering"""

from .indicators import BaseIndicator
from .market_data import BaseExchangeRestAPI, BaseKlineStream, ConnectionState
from .observability import BaseObservabilitySink
from .rendering import BaseChartSurface, BaseRenderSink, BaseSeries, BaseTimeScale

__all__ = [
    "BaseExchangeRestAPI",
    "BaseKlineStream",
    "ConnectionState",
    "BaseObservabilitySink",
    "BaseIndicator",
    "BaseRenderSink",
    "BaseChartSurface",
    "BaseSeries",
    "BaseTimeScale",
]
