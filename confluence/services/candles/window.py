"""
Candle Window

Bounded, time-ordered buffer of candles for one timeframe.
"""

import logging
from collections import deque
from typing import Iterable, Iterator, Optional

from confluence.schemas.market import Candle, WindowOp

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 400


class CandleWindow:
    """
    FIFO candle buffer with an in-place update of the newest candle.

    Usage:
        window = CandleWindow(capacity=400)
        window.apply(candle)      # APPEND or UPDATE, decided by candle.time
        candles = window.candles  # oldest first
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError(f"Window capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._candles: deque[Candle] = deque(maxlen=capacity)
        self._version = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def version(self) -> int:
        """Bumped on every mutation; derived state keyed on it is stale once it moves."""
        return self._version

    @property
    def candles(self) -> list[Candle]:
        return list(self._candles)

    @property
    def last(self) -> Optional[Candle]:
        return self._candles[-1] if self._candles else None

    def __len__(self) -> int:
        return len(self._candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(list(self._candles))

    def classify(self, candle: Candle) -> WindowOp:
        """Decide how `candle` would be applied without applying it."""
        last = self.last
        if last is not None and last.time == candle.time:
            return WindowOp.UPDATE
        return WindowOp.APPEND

    def apply(self, candle: Candle) -> WindowOp:
        """
        Apply a streamed candle.

        Same time as the newest candle replaces it; anything else is appended.
        Out-of-order times are appended too, keeping them out is the source's job.
        """
        op = self.classify(candle)
        if op == WindowOp.UPDATE:
            self.replace_last(candle)
        else:
            self.append(candle)
        return op

    def append(self, candle: Candle) -> None:
        """Append a new period; the oldest candle is evicted past capacity."""
        last = self.last
        if last is not None and candle.time < last.time:
            logger.debug(f"Out-of-order candle appended: {candle.time} < {last.time}")
        self._candles.append(candle)
        self._version += 1

    def replace_last(self, candle: Candle) -> None:
        """Replace the in-progress candle. Length never changes."""
        if not self._candles:
            self._candles.append(candle)
        else:
            self._candles[-1] = candle
        self._version += 1

    def reset(self, candles: Iterable[Candle]) -> None:
        """Replace the whole window, keeping the newest `capacity` candles."""
        self._candles = deque(candles, maxlen=self._capacity)
        self._version += 1

    def tail(self, count: int) -> list[Candle]:
        """Newest `count` candles, oldest first."""
        if count <= 0:
            return []
        candles = list(self._candles)
        return candles[-count:]
