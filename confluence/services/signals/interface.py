"""
Signal Detector Service Interface

Defines the contract for the confluence signal layer.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Sequence

from confluence.services.base import BaseService
from confluence.schemas.market import Candle
from confluence.schemas.indicators import IndicatorSnapshot
from confluence.schemas.signals import Signal


@dataclass
class SignalInput:
    """Input for signal detection."""

    candles: Sequence[Candle]
    indicators: Sequence[IndicatorSnapshot]


class SignalServiceInterface(BaseService[SignalInput, Signal]):
    """
    Signal Detector Contract.

    INPUT: SignalInput
        - candles: Candle window, oldest first
        - indicators: Snapshots aligned with the window

    OUTPUT: Signal
        - BUY / SELL with price, candle time and rule trace
        - NONE when no rule matches or history is insufficient

    RULES (first match wins):
        1. BUY  trend + bull EMAs + MACD bull cross + Fib support + RSI + volume
        2. BUY  same without Fib support, provided no Fib resistance nearby
        3. SELL down trend + bear EMAs + MACD bear cross + Fib resistance + RSI + volume
        4. SELL same without Fib resistance, provided no Fib support nearby

    Pure classification: no history of past signals is consulted.
    """

    @property
    def name(self) -> str:
        return "SignalService"

    @abstractmethod
    async def execute(self, input_data: SignalInput) -> Signal:
        """Evaluate the rule set on the latest candle."""
        pass

    @abstractmethod
    def check(
        self,
        candles: Sequence[Candle],
        indicators: Sequence[IndicatorSnapshot],
    ) -> Signal:
        """Synchronous form of execute()."""
        pass
