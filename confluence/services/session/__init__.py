"""
Session Manager

CONTRACT:
    Input:  CandleEvent (timeframe + candle) from the candle source
    Output: Signals, alert log, signal feed, current TradeSetup

RESPONSIBILITIES:
    - One TimeframeCoordinator per configured timeframe
    - Per-timeframe deduplication of signals (coordinator)
    - Bounded alert log (newest first) and signal feed (oldest first)
    - Trade sizing for signals on the primary timeframe
    - Order ticket hand-off to the order sink
"""

from confluence.services.session.coordinator import CoordinatorUpdate, TimeframeCoordinator
from confluence.services.session.interface import (
    CandleEvent,
    OrderSink,
    SessionServiceInterface,
    SignalCallback,
)
from confluence.services.session.manager import (
    SessionManager,
    get_session_manager,
    reset_session_manager,
)

__all__ = [
    "CoordinatorUpdate",
    "TimeframeCoordinator",
    "CandleEvent",
    "OrderSink",
    "SessionServiceInterface",
    "SignalCallback",
    "SessionManager",
    "get_session_manager",
    "reset_session_manager",
]
