"""
CONTRACT 5: Session Views

Read-only views handed to the presentation layer.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from confluence.schemas.market import Candle
from confluence.schemas.indicators import IndicatorSnapshot
from confluence.schemas.signals import AlertHistoryItem, Signal
from confluence.schemas.risk import TradeSetup


class CoordinatorState(str, Enum):
    WARMING = "WARMING"  # Not enough candles for signal detection
    ACTIVE = "ACTIVE"  # Signal detection live; never reverts


class TimeframeView(BaseModel):
    """Window, indicators and last signal of one timeframe."""

    timeframe: str
    state: CoordinatorState
    candles: list[Candle]
    indicators: list[IndicatorSnapshot]
    last_signal: Optional[Signal] = None


class TimeframeSummary(BaseModel):
    """Compact per-timeframe status for the overview."""

    timeframe: str
    state: CoordinatorState
    candle_count: int
    last_close: Optional[float] = None
    last_signal: Optional[Signal] = None


class SessionSnapshot(BaseModel):
    """Everything the presentation layer shows for the active symbol."""

    symbol: str
    primary_timeframe: str
    timeframes: list[TimeframeSummary]
    signal_feed: list[Signal]
    alert_history: list[AlertHistoryItem]
    trade_setup: Optional[TradeSetup] = None
