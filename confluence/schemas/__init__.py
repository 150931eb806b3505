"""
Confluence Schema Contracts

This module defines all contracts between system components.
"""

from confluence.schemas.market import Candle, Timeframe, WindowOp
from confluence.schemas.indicators import (
    FIB_RATIOS,
    BollingerBandsData,
    FibonacciLevels,
    IndicatorSnapshot,
    MACDData,
)
from confluence.schemas.signals import AlertHistoryItem, Signal, SignalType
from confluence.schemas.risk import (
    AccountBalance,
    OrderRequest,
    RiskParams,
    TradeSetup,
    TradeSide,
)
from confluence.schemas.session import (
    CoordinatorState,
    SessionSnapshot,
    TimeframeSummary,
    TimeframeView,
)

__all__ = [
    # Market
    "Candle",
    "Timeframe",
    "WindowOp",
    # Indicators
    "FIB_RATIOS",
    "BollingerBandsData",
    "FibonacciLevels",
    "IndicatorSnapshot",
    "MACDData",
    # Signals
    "AlertHistoryItem",
    "Signal",
    "SignalType",
    # Risk
    "AccountBalance",
    "OrderRequest",
    "RiskParams",
    "TradeSetup",
    "TradeSide",
    # Session
    "CoordinatorState",
    "SessionSnapshot",
    "TimeframeSummary",
    "TimeframeView",
]
