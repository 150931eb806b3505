"""
CONTRACT 2: Indicator Pipeline

Input: Candle window (one timeframe)
Output: list[IndicatorSnapshot], positionally aligned with the window

A field left as None means the window does not yet hold enough history
for that indicator. None is never the same thing as zero.
"""

from typing import Optional

from pydantic import BaseModel, Field


FIB_RATIOS: tuple[float, ...] = (0, 0.236, 0.382, 0.5, 0.618, 0.786, 1)

# Retracement levels checked by the signal rules
FIB_SUPPORT_RATIOS: tuple[float, ...] = (0.618, 0.5, 0.382)
FIB_RESISTANCE_RATIOS: tuple[float, ...] = (0.236, 0)


class MACDData(BaseModel):
    """MACD indicator values."""

    macd: float
    signal: float
    histogram: float


class BollingerBandsData(BaseModel):
    """Bollinger Bands values."""

    upper: float
    middle: float
    lower: float


class IndicatorSnapshot(BaseModel):
    """Indicator values for a single candle of the window."""

    time: int
    ema_7: Optional[float] = None
    ema_25: Optional[float] = None
    ema_99: Optional[float] = None
    rsi_14: Optional[float] = Field(default=None, ge=0, le=100)
    macd: Optional[MACDData] = None
    bollinger: Optional[BollingerBandsData] = None

    @property
    def has_trend_fields(self) -> bool:
        """EMA(7/25/99) and MACD are all defined."""
        return (
            self.ema_7 is not None
            and self.ema_25 is not None
            and self.ema_99 is not None
            and self.macd is not None
        )


class FibonacciLevels(BaseModel):
    """Retracement levels between the high and low of a trailing sub-window."""

    high: float
    low: float
    levels: dict[float, float]

    def level(self, ratio: float) -> float:
        return self.levels[ratio]
