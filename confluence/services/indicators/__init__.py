"""
Indicator Pipeline Service

CONTRACT:
    Input:  Candle window of one timeframe
    Output: list[IndicatorSnapshot] aligned 1:1 with the window

RESPONSIBILITIES:
    - EMA(7), EMA(25), EMA(99)
    - RSI(14) with Wilder smoothing
    - MACD(12, 26, 9)
    - Bollinger Bands(20, 2)
    - Fibonacci retracement of the trailing 100 candles (on demand)

PURE PYTHON - Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from confluence.services.indicators.interface import IndicatorServiceInterface
from confluence.services.indicators.service import IndicatorService, get_indicator_service

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "get_indicator_service",
]
