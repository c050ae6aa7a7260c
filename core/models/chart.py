"""
Chart output models

- SeriesPoint: one indicator/volume output point
- LogicalRange: visible range of a time axis (bar index space)
- EMAConfig / RSIConfig / MACDConfig: indicator configuration objects
"""

from pydantic import BaseModel, ConfigDict, Field


class SeriesPoint(BaseModel):
    """
    Single output point of an indicator series

    A None value is a whitespace point: the time slot exists but nothing is
    drawn (e.g. RSI warm-up bars).
    """

    model_config = ConfigDict(frozen=True)

    time: int = Field(description="Bar open time (unix seconds)")
    value: float | None = Field(default=None)
    color: str | None = Field(default=None, description="Per-point color override")


class LogicalRange(BaseModel):
    """Visible logical range of a time scale"""

    model_config = ConfigDict(frozen=True)

    start: float
    end: float


# Periods are plain ints on purpose: invalid values surface as empty output
# from the calculators, not as validation errors.


class EMAConfig(BaseModel):
    period: int = 9
    color: str = "orange"


class RSIConfig(BaseModel):
    period: int = 14
    color: str = "#B0BEC5"
    height: int = 120


class MACDConfig(BaseModel):
    fast_period: int = 12
    slow_period: int = 26
    signal_period: int = 9
