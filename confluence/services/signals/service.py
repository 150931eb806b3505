"""
Signal Detector Service Implementation

Evaluates the fixed confluence rule set on the latest candle of a window.
Deterministic: identical inputs always give an identical Signal.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from confluence.core.config import settings
from confluence.schemas.market import Candle
from confluence.schemas.indicators import (
    FIB_RESISTANCE_RATIOS,
    FIB_SUPPORT_RATIOS,
    FibonacciLevels,
    IndicatorSnapshot,
)
from confluence.schemas.signals import Signal, SignalType
from confluence.services.signals.interface import SignalServiceInterface, SignalInput
from confluence.services.indicators.calculations import average_volume
from confluence.services.indicators.service import IndicatorService, get_indicator_service

logger = logging.getLogger(__name__)

MIN_CANDLES = 100
FIB_TOLERANCE = 0.005  # 0.5% relative distance to a level
RSI_OVERBOUGHT = 70
RSI_OVERSOLD = 30
RSI_DEFAULT = 50.0
VOLUME_PERIOD = 20
VOLUME_FACTOR = 1.1

REASON_BUY_FIB = "EMA+MACD+Fib Support+RSI confluence"
REASON_BUY = "EMA+MACD confluence (no Fib)"
REASON_SELL_FIB = "EMA+MACD+Fib Resistance confluence"
REASON_SELL = "EMA+MACD confluence (no Fib)"


@dataclass(frozen=True)
class SignalConditions:
    """Boolean predicates feeding the rule set."""

    up_trend: bool
    ema_aligned_bull: bool
    ema_aligned_bear: bool
    macd_bull_cross: bool
    macd_bear_cross: bool
    near_support: bool
    near_resistance: bool
    rsi_safe_buy: bool
    rsi_safe_sell: bool
    high_volume: bool


def _near_any(price: float, levels: Sequence[float], tolerance: float) -> bool:
    return any(level != 0 and abs(price - level) / abs(level) < tolerance for level in levels)


def evaluate_conditions(
    candles: Sequence[Candle],
    current: IndicatorSnapshot,
    previous: IndicatorSnapshot,
    fib: Optional[FibonacciLevels],
) -> SignalConditions:
    """Derive every predicate for the latest candle."""
    last = candles[-1]
    price = last.close

    # 1. Trend: price above EMA 99 (permissive when undefined)
    up_trend = price > current.ema_99 if current.ema_99 is not None else True

    # 2. EMA alignment
    emas_defined = (
        current.ema_7 is not None
        and current.ema_25 is not None
        and current.ema_99 is not None
    )
    ema_aligned_bull = emas_defined and current.ema_7 > current.ema_25 > current.ema_99
    ema_aligned_bear = emas_defined and current.ema_7 < current.ema_25 < current.ema_99

    # 3. Momentum: MACD crossover on this step only
    macd_bull_cross = False
    macd_bear_cross = False
    if current.macd is not None and previous.macd is not None:
        macd_bull_cross = (
            previous.macd.macd <= previous.macd.signal
            and current.macd.macd > current.macd.signal
        )
        macd_bear_cross = (
            previous.macd.macd >= previous.macd.signal
            and current.macd.macd < current.macd.signal
        )

    # 4. Fibonacci support / resistance proximity
    near_support = False
    near_resistance = False
    if fib is not None:
        near_support = _near_any(
            price, [fib.level(r) for r in FIB_SUPPORT_RATIOS], FIB_TOLERANCE
        )
        near_resistance = _near_any(
            price, [fib.level(r) for r in FIB_RESISTANCE_RATIOS], FIB_TOLERANCE
        )

    # 5. RSI: avoid stretched entries
    rsi_val = current.rsi_14 if current.rsi_14 is not None else RSI_DEFAULT

    # 6. Volume confirmation
    volumes = np.array([c.volume for c in candles[-VOLUME_PERIOD:]], dtype=float)
    high_volume = last.volume > average_volume(volumes, VOLUME_PERIOD) * VOLUME_FACTOR

    return SignalConditions(
        up_trend=up_trend,
        ema_aligned_bull=ema_aligned_bull,
        ema_aligned_bear=ema_aligned_bear,
        macd_bull_cross=macd_bull_cross,
        macd_bear_cross=macd_bear_cross,
        near_support=near_support,
        near_resistance=near_resistance,
        rsi_safe_buy=rsi_val < RSI_OVERBOUGHT,
        rsi_safe_sell=rsi_val > RSI_OVERSOLD,
        high_volume=high_volume,
    )


def classify(conditions: SignalConditions) -> tuple[SignalType, str]:
    """Apply the rules in order. Returns (NONE, "") when nothing matches."""
    c = conditions
    bull_base = (
        c.up_trend and c.ema_aligned_bull and c.macd_bull_cross
        and c.rsi_safe_buy and c.high_volume
    )
    bear_base = (
        not c.up_trend and c.ema_aligned_bear and c.macd_bear_cross
        and c.rsi_safe_sell and c.high_volume
    )

    if bull_base and c.near_support:
        return SignalType.BUY, REASON_BUY_FIB
    if bull_base and not c.near_resistance:
        return SignalType.BUY, REASON_BUY
    if bear_base and c.near_resistance:
        return SignalType.SELL, REASON_SELL_FIB
    if bear_base and not c.near_support:
        return SignalType.SELL, REASON_SELL
    return SignalType.NONE, ""


class SignalService(SignalServiceInterface):
    """
    Signal Detector.

    Needs at least 100 candles and defined EMA/MACD values on both the
    latest and the previous snapshot; otherwise returns NONE.
    """

    def __init__(
        self,
        indicator_service: Optional[IndicatorService] = None,
        min_candles: int = MIN_CANDLES,
    ):
        self._indicator_service = indicator_service
        self.min_candles = min_candles

    @property
    def indicator_service(self) -> IndicatorService:
        """Lazy load indicator service."""
        if self._indicator_service is None:
            self._indicator_service = get_indicator_service()
        return self._indicator_service

    async def execute(self, input_data: SignalInput) -> Signal:
        return self.check(input_data.candles, input_data.indicators)

    def check(
        self,
        candles: Sequence[Candle],
        indicators: Sequence[IndicatorSnapshot],
    ) -> Signal:
        if len(candles) < self.min_candles or len(indicators) < 2:
            return Signal.none()

        current = indicators[-1]
        previous = indicators[-2]
        if not (current.has_trend_fields and previous.has_trend_fields):
            return Signal.none()

        fib = self.indicator_service.fibonacci(candles)
        conditions = evaluate_conditions(candles, current, previous, fib)
        signal_type, reason = classify(conditions)

        if signal_type == SignalType.NONE:
            return Signal.none()

        last = candles[-1]
        logger.debug(f"{signal_type.value} at {last.time}: {reason} ({conditions})")
        return Signal(type=signal_type, price=last.close, time=last.time, reason=reason)


# Singleton instance
_service_instance: Optional[SignalService] = None


def get_signal_service() -> SignalService:
    """Get or create signal service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = SignalService(min_candles=settings.min_signal_candles)
    return _service_instance
