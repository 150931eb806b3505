"""
Indicator Pipeline Service Implementation

Turns a candle window into positionally aligned indicator snapshots.
Pure Python/NumPy calculations, recomputed from the whole window on
every call.
"""

from typing import Optional, Sequence

from confluence.core.config import settings
from confluence.schemas.market import Candle
from confluence.schemas.indicators import (
    BollingerBandsData,
    FibonacciLevels,
    IndicatorSnapshot,
    MACDData,
)
from confluence.services.indicators.interface import IndicatorServiceInterface
from confluence.services.indicators.calculations import (
    OHLCVData,
    bollinger_bands,
    ema,
    fibonacci_levels,
    macd,
    rsi,
    to_optional,
)

EMA_PERIODS = (7, 25, 99)
RSI_PERIOD = 14
MACD_FAST, MACD_SLOW, MACD_SIGNAL = 12, 26, 9
BB_PERIOD, BB_STD_DEV = 20, 2.0
FIB_LOOKBACK = 100


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Pipeline.

    Stateless: the same window always yields the same snapshots.
    """

    def __init__(self, fib_lookback: int = FIB_LOOKBACK):
        self.fib_lookback = fib_lookback

    async def execute(self, input_data: Sequence[Candle]) -> list[IndicatorSnapshot]:
        """Calculate snapshots for a candle window."""
        return self.calculate(input_data)

    def calculate(self, candles: Sequence[Candle]) -> list[IndicatorSnapshot]:
        if not candles:
            return []

        data = OHLCVData.from_candles(candles)
        closes = data.closes

        ema_7, ema_25, ema_99 = (ema(closes, p) for p in EMA_PERIODS)
        rsi_14 = rsi(closes, RSI_PERIOD)
        macd_line, signal_line, histogram = macd(closes, MACD_FAST, MACD_SLOW, MACD_SIGNAL)
        bb_upper, bb_middle, bb_lower = bollinger_bands(closes, BB_PERIOD, BB_STD_DEV)

        snapshots = []
        for i, candle in enumerate(candles):
            macd_data = None
            if to_optional(signal_line[i]) is not None:
                macd_data = MACDData(
                    macd=float(macd_line[i]),
                    signal=float(signal_line[i]),
                    histogram=float(histogram[i]),
                )

            bb_data = None
            if to_optional(bb_middle[i]) is not None:
                bb_data = BollingerBandsData(
                    upper=float(bb_upper[i]),
                    middle=float(bb_middle[i]),
                    lower=float(bb_lower[i]),
                )

            snapshots.append(
                IndicatorSnapshot(
                    time=candle.time,
                    ema_7=to_optional(ema_7[i]),
                    ema_25=to_optional(ema_25[i]),
                    ema_99=to_optional(ema_99[i]),
                    rsi_14=to_optional(rsi_14[i]),
                    macd=macd_data,
                    bollinger=bb_data,
                )
            )

        return snapshots

    def fibonacci(
        self, candles: Sequence[Candle], lookback: Optional[int] = None
    ) -> Optional[FibonacciLevels]:
        if lookback is None:
            lookback = self.fib_lookback
        recent = list(candles)[-lookback:] if lookback > 0 else []
        if not recent:
            return None

        data = OHLCVData.from_candles(recent)
        levels = fibonacci_levels(data.highs, data.lows)
        return FibonacciLevels(high=levels[0], low=levels[1], levels=levels)


# Singleton instance
_service_instance: Optional[IndicatorService] = None


def get_indicator_service() -> IndicatorService:
    """Get or create indicator service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = IndicatorService(fib_lookback=settings.fibonacci_lookback)
    return _service_instance
