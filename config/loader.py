"""
Chart board loader with YAML support and Pydantic validation
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from core.models.market_data import SubscriptionKey

logger = logging.getLogger(__name__)

DEFAULT_SYMBOLS = ["BTCUSDT", "ETHUSDT", "SOLUSDT", "BNBUSDT"]


class IndicatorSpec(BaseModel):
    """One indicator on a chart: registry type + constructor params"""

    type: str
    params: dict[str, Any] = Field(default_factory=dict)


class ChartConfig(BaseModel):
    """Single chart configuration"""

    id: str
    symbol: str
    interval: str = "1m"
    indicators: list[IndicatorSpec] = Field(default_factory=list)

    @field_validator("symbol")
    @classmethod
    def symbol_upper(cls, v: str) -> str:
        return v.strip().upper()

    @property
    def key(self) -> SubscriptionKey:
        return SubscriptionKey.of(self.symbol, self.interval)


class ChartBoardConfig(BaseModel):
    """All charts on the board"""

    charts: list[ChartConfig]

    @field_validator("charts")
    @classmethod
    def ids_unique(cls, v):
        ids = [c.id for c in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Chart ids must be unique")
        return v


def default_board() -> list[ChartConfig]:
    """Board used when no YAML file exists"""
    return [
        ChartConfig(id=f"chart-{symbol[:3].lower()}", symbol=symbol)
        for symbol in DEFAULT_SYMBOLS
    ]


def load_chart_board(config_path: str = "config/providers/charts.yaml") -> list[ChartConfig]:
    """
    Load and validate the chart board from YAML

    Args:
        config_path: Path to charts.yaml

    Returns:
        List of validated chart configs. Falls back to default_board() when
        the file does not exist.

    Raises:
        ValidationError: If the file exists but is invalid

    Example:
        >>> charts = load_chart_board()
        >>> charts[0].key
        SubscriptionKey(symbol='BTCUSDT', interval='1m')
    """
    config_file = Path(config_path)

    if not config_file.exists():
        logger.warning(f"Chart board config not found: {config_path}, using defaults")
        return default_board()

    with open(config_file) as f:
        data = yaml.safe_load(f) or {}

    try:
        board = ChartBoardConfig(**data)
        logger.info(f"✓ Loaded {len(board.charts)} chart configurations")
        return board.charts

    except Exception as e:
        logger.error(f"Failed to load chart board config: {e}")
        raise


__all__ = [
    "IndicatorSpec",
    "ChartConfig",
    "ChartBoardConfig",
    "default_board",
    "load_chart_board",
]
