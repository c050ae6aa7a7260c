"""
Abstract interface for chart indicators

Every calculator follows the same lifecycle:
    render(surface) → update(history) on each closed bar → destroy()
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from core.interfaces.rendering import BaseChartSurface
from core.models.market_data import Candle

logger = logging.getLogger(__name__)


class BaseIndicator(ABC):
    """
    Indicator contract

    Design principle:
    - calculate() is pure: output is a function of the candles passed in
    - render() allocates sink-side resources exactly once
    - update() recomputes over the whole history and republishes everything
    - update_last() is an optional incremental path (falls back to update)
    - destroy() releases everything and is idempotent

    Candles are read-only snapshots owned by the DataCoordinator; indicators
    must never mutate them.

    Implementations:
    - EMA (domain/indicators/moving_averages.py)
    - RSI, MACD (domain/indicators/momentum.py)
    - Ribbon (domain/indicators/ribbon.py)
    - Volume (domain/indicators/volume.py)
    """

    def __init__(self, **params: Any):
        self.name = self.__class__.__name__
        self.params = params
        self.surface: BaseChartSurface | None = None
        self._rendered = False

    @abstractmethod
    def calculate(self, candles: Sequence[Candle]) -> Any:
        """
        Calculate indicator output from candles (oldest first)

        Must have no side effects.
        """

    @abstractmethod
    def _allocate(self, surface: BaseChartSurface) -> None:
        """Create series/panels on the surface"""

    @abstractmethod
    def _publish(self, candles: Sequence[Candle]) -> None:
        """Recompute and push the full output series"""

    @abstractmethod
    def _release(self) -> None:
        """Remove series/panels created by _allocate"""

    @property
    def rendered(self) -> bool:
        return self._rendered

    def render(self, surface: BaseChartSurface) -> None:
        """
        Allocate output destinations on the surface

        Calling render() on an already rendered indicator does nothing.
        """
        if self._rendered:
            logger.debug(f"{self!r} already rendered, skipping")
            return

        self._allocate(surface)
        self.surface = surface
        self._rendered = True

    def update(self, candles: Sequence[Candle]) -> None:
        """Full recompute over the supplied history"""
        if not self._rendered or not candles:
            return
        self._publish(candles)

    def update_last(self, candle: Candle, candles: Sequence[Candle]) -> None:
        """Incremental path for a live tick; default is a full recompute"""
        self.update(candles)

    def destroy(self) -> None:
        """Release all sink-side resources (idempotent)"""
        if not self._rendered:
            return
        try:
            self._release()
        finally:
            self.surface = None
            self._rendered = False

    def __repr__(self) -> str:
        params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return f"{self.name}({params_str})"
