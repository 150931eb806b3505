"""
Indicator Pipeline Service Interface

Defines the contract for the indicator calculation layer.
"""

from abc import abstractmethod
from typing import Optional, Sequence

from confluence.services.base import BaseService
from confluence.schemas.market import Candle
from confluence.schemas.indicators import FibonacciLevels, IndicatorSnapshot


class IndicatorServiceInterface(BaseService[Sequence[Candle], list[IndicatorSnapshot]]):
    """
    Indicator Pipeline Contract.

    INPUT: Sequence[Candle]
        - The full candle window of one timeframe, oldest first

    OUTPUT: list[IndicatorSnapshot]
        - One snapshot per candle, same order and length as the input
        - A field is None until the window holds enough history for it:
            EMA(p)       index >= p - 1
            RSI(14)      index >= 14
            MACD(12,26,9) index >= 33
            BB(20, 2)    index >= 19
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    def calculate(self, candles: Sequence[Candle]) -> list[IndicatorSnapshot]:
        """Recompute every indicator over the whole window."""
        pass

    @abstractmethod
    def fibonacci(
        self, candles: Sequence[Candle], lookback: Optional[int] = None
    ) -> Optional[FibonacciLevels]:
        """
        Retracement levels over the newest `lookback` candles.

        Returns None for an empty window.
        """
        pass
