"""
Shared fixtures for the confluence test suite.
"""

from typing import Optional, Sequence

import pytest

from confluence.core.config import Settings
from confluence.schemas.market import Candle
from confluence.schemas.indicators import IndicatorSnapshot
from confluence.schemas.signals import Signal, SignalType

MINUTE_MS = 60_000


def make_candle(
    index: int,
    close: float = 100.0,
    volume: float = 100.0,
    high: Optional[float] = None,
    low: Optional[float] = None,
    is_final: bool = True,
) -> Candle:
    """Candle for period `index` of a 1-minute series."""
    return Candle(
        time=index * MINUTE_MS,
        open=close,
        high=close if high is None else high,
        low=close if low is None else low,
        close=close,
        volume=volume,
        is_final=is_final,
    )


def flat_candles(count: int, price: float = 100.0, start: int = 0) -> list[Candle]:
    return [make_candle(start + i, close=price) for i in range(count)]


class StubSignalService:
    """Signal detector double: fires on the latest candle whenever enabled."""

    def __init__(self, enabled: bool = True, signal_type: SignalType = SignalType.BUY):
        self.enabled = enabled
        self.signal_type = signal_type
        self.calls = 0

    def check(
        self,
        candles: Sequence[Candle],
        indicators: Sequence[IndicatorSnapshot],
    ) -> Signal:
        self.calls += 1
        if not self.enabled or not candles:
            return Signal.none()
        last = candles[-1]
        return Signal(
            type=self.signal_type,
            price=last.close,
            time=last.time,
            reason="stub confluence",
        )


@pytest.fixture
def stub_signals() -> StubSignalService:
    return StubSignalService()


@pytest.fixture
def test_settings() -> Settings:
    """Small windows so coordinators activate after a handful of candles."""
    return Settings(
        _env_file=None,
        timeframes=["5m", "1h"],
        primary_timeframe="1h",
        window_capacity=50,
        min_signal_candles=3,
        feed_reconnect_delay=0.01,
        feed_max_reconnect_delay=0.02,
    )
