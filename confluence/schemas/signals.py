"""
CONTRACT 3: Signal Detection

Input: Candle window + aligned IndicatorSnapshots
Output: Signal (at most one per evaluation)

NONE is the "no signal" sentinel. It is never stored in the alert log.
"""

from enum import Enum

from pydantic import BaseModel, Field


class SignalType(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    NONE = "NONE"


class Signal(BaseModel):
    """Result of one confluence evaluation."""

    type: SignalType
    price: float = 0.0
    time: int = 0
    reason: str = ""

    @classmethod
    def none(cls) -> "Signal":
        return cls(type=SignalType.NONE)

    @property
    def is_none(self) -> bool:
        return self.type == SignalType.NONE


class AlertHistoryItem(BaseModel):
    """
    Entry of the bounded alert log.
    Keyed by timeframe + candle time.
    """

    id: str = Field(..., description="'<timeframe>-<time>'")
    timestamp: int
    timeframe: str
    type: SignalType
    price: float
    reason: str

    @classmethod
    def from_signal(cls, timeframe: str, signal: Signal) -> "AlertHistoryItem":
        return cls(
            id=f"{timeframe}-{signal.time}",
            timestamp=signal.time,
            timeframe=timeframe,
            type=signal.type,
            price=signal.price,
            reason=signal.reason,
        )
