"""
Candle Window

RESPONSIBILITIES:
    - Hold the bounded candle history of one timeframe
    - Append new periods, evicting the oldest past capacity
    - Replace the in-progress candle in place
"""

from confluence.services.candles.window import CandleWindow, DEFAULT_CAPACITY

__all__ = ["CandleWindow", "DEFAULT_CAPACITY"]
