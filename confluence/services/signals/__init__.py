"""
Signal Detector Service

CONTRACT:
    Input:  Candle window + aligned IndicatorSnapshots
    Output: Signal (BUY / SELL / NONE)

RESPONSIBILITIES:
    - Derive trend, EMA alignment, MACD crossover, Fibonacci proximity,
      RSI safety and volume predicates for the latest candle
    - Apply the four confluence rules, first match wins

PURE PYTHON - No state carried between calls.
Deduplication of repeated signals belongs to the timeframe coordinator.
"""

from confluence.services.signals.interface import SignalServiceInterface, SignalInput
from confluence.services.signals.service import (
    SignalConditions,
    SignalService,
    classify,
    evaluate_conditions,
    get_signal_service,
)

__all__ = [
    "SignalServiceInterface",
    "SignalInput",
    "SignalConditions",
    "SignalService",
    "classify",
    "evaluate_conditions",
    "get_signal_service",
]
