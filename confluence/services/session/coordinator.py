"""
Timeframe Coordinator

Owns the candle window and derived indicators of one timeframe and turns
each incoming candle into at most one deduplicated signal.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from confluence.schemas.market import Candle, WindowOp
from confluence.schemas.indicators import FibonacciLevels, IndicatorSnapshot
from confluence.schemas.signals import Signal
from confluence.schemas.session import CoordinatorState, TimeframeSummary, TimeframeView
from confluence.services.candles import CandleWindow, DEFAULT_CAPACITY
from confluence.services.indicators.service import IndicatorService, get_indicator_service
from confluence.services.signals.service import MIN_CANDLES, SignalService, get_signal_service

logger = logging.getLogger(__name__)


@dataclass
class CoordinatorUpdate:
    """Outcome of applying one candle."""

    timeframe: str
    op: WindowOp
    candle: Candle
    signal: Optional[Signal] = None  # Non-NONE and not a duplicate

    @property
    def closed(self) -> bool:
        return self.candle.is_final

    @property
    def propagate(self) -> bool:
        """Only a closed candle or a fresh signal goes past the coordinator."""
        return self.closed or self.signal is not None


class TimeframeCoordinator:
    """
    Per-timeframe state machine: WARMING -> ACTIVE.

    ACTIVE is entered once the window holds `min_signal_candles` candles and
    is never left. Not thread-safe; callers serialize updates per timeframe.
    """

    def __init__(
        self,
        timeframe: str,
        capacity: int = DEFAULT_CAPACITY,
        min_signal_candles: int = MIN_CANDLES,
        indicator_service: Optional[IndicatorService] = None,
        signal_service: Optional[SignalService] = None,
    ):
        self.timeframe = timeframe
        self.min_signal_candles = min_signal_candles
        self._window = CandleWindow(capacity)
        self._indicator_service = indicator_service or get_indicator_service()
        self._signal_service = signal_service or get_signal_service()

        self._state = CoordinatorState.WARMING
        self._indicators: list[IndicatorSnapshot] = []
        self._indicators_version = self._window.version
        self._last_signal: Optional[Signal] = None
        self._last_emitted_time: Optional[int] = None

    @property
    def state(self) -> CoordinatorState:
        return self._state

    @property
    def candles(self) -> list[Candle]:
        return self._window.candles

    @property
    def indicators(self) -> list[IndicatorSnapshot]:
        return list(self._indicators)

    @property
    def last_signal(self) -> Optional[Signal]:
        return self._last_signal

    @property
    def last_emitted_time(self) -> Optional[int]:
        return self._last_emitted_time

    def __len__(self) -> int:
        return len(self._window)

    def seed(self, candles: Iterable[Candle]) -> None:
        """
        Load a historical batch. Never emits a signal.

        Deduplication state survives a re-seed so a reconnecting feed does
        not re-announce the signal of a candle it already reported.
        """
        self._window.reset(candles)
        self._recompute()
        self._update_state()
        logger.info(f"[{self.timeframe}] Seeded with {len(self._window)} candles ({self._state.value})")

    def on_candle(self, candle: Candle) -> CoordinatorUpdate:
        """Apply -> recompute -> detect -> deduplicate."""
        op = self._window.apply(candle)
        self._recompute()
        self._update_state()

        update = CoordinatorUpdate(timeframe=self.timeframe, op=op, candle=candle)
        if self._state != CoordinatorState.ACTIVE:
            return update

        signal = self._signal_service.check(self._window.candles, self._indicators)
        if signal.is_none:
            if not candle.is_final:
                logger.debug(f"[{self.timeframe}] In-progress update at {candle.time}")
            return update

        if signal.time == self._last_emitted_time:
            logger.debug(f"[{self.timeframe}] Duplicate {signal.type.value} at {signal.time} suppressed")
            return update

        self._last_emitted_time = signal.time
        self._last_signal = signal
        update.signal = signal
        logger.info(f"[{self.timeframe}] {signal.type.value} @ {signal.price}: {signal.reason}")
        return update

    def fibonacci(self) -> Optional[FibonacciLevels]:
        return self._indicator_service.fibonacci(self._window.candles)

    def view(self) -> TimeframeView:
        return TimeframeView(
            timeframe=self.timeframe,
            state=self._state,
            candles=self._window.candles,
            indicators=self.indicators,
            last_signal=self._last_signal,
        )

    def summary(self) -> TimeframeSummary:
        last = self._window.last
        return TimeframeSummary(
            timeframe=self.timeframe,
            state=self._state,
            candle_count=len(self._window),
            last_close=last.close if last else None,
            last_signal=self._last_signal,
        )

    def _recompute(self) -> None:
        if self._indicators_version == self._window.version and self._indicators:
            return
        self._indicators = self._indicator_service.calculate(self._window.candles)
        self._indicators_version = self._window.version

    def _update_state(self) -> None:
        if self._state == CoordinatorState.WARMING and len(self._window) >= self.min_signal_candles:
            self._state = CoordinatorState.ACTIVE
            logger.info(f"[{self.timeframe}] Signal detection active")
