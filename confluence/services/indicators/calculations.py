"""
Technical Indicator Calculations

Pure Python/NumPy implementations of the confluence indicator set.
All math is deterministic. Every function returns an array aligned 1:1
with its input, with NaN wherever the indicator is not yet defined.
"""

import numpy as np
from dataclasses import dataclass
from typing import Sequence

from confluence.schemas.indicators import FIB_RATIOS
from confluence.schemas.market import Candle


@dataclass
class OHLCVData:
    """OHLCV data arrays for calculations."""

    timestamps: np.ndarray
    opens: np.ndarray
    highs: np.ndarray
    lows: np.ndarray
    closes: np.ndarray
    volumes: np.ndarray

    @classmethod
    def from_candles(cls, candles: Sequence[Candle]) -> "OHLCVData":
        return cls(
            timestamps=np.array([c.time for c in candles], dtype=np.int64),
            opens=np.array([c.open for c in candles], dtype=float),
            highs=np.array([c.high for c in candles], dtype=float),
            lows=np.array([c.low for c in candles], dtype=float),
            closes=np.array([c.close for c in candles], dtype=float),
            volumes=np.array([c.volume for c in candles], dtype=float),
        )


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(data: np.ndarray, period: int) -> np.ndarray:
    """Simple Moving Average."""
    if len(data) < period:
        return np.full(len(data), np.nan)

    result = np.full(len(data), np.nan)
    for i in range(period - 1, len(data)):
        result[i] = np.mean(data[i - period + 1 : i + 1])
    return result


def ema(data: np.ndarray, period: int) -> np.ndarray:
    """
    Exponential Moving Average.

    Seeded with the SMA of the first `period` values, so the first defined
    index is `period - 1`. Leading NaNs are skipped: the seed window starts
    at the first defined input (needed for the MACD signal line).
    """
    result = np.full(len(data), np.nan)

    defined = np.flatnonzero(~np.isnan(data))
    if len(defined) == 0:
        return result

    start = int(defined[0])
    if len(data) - start < period:
        return result

    multiplier = 2 / (period + 1)
    seed = start + period - 1

    # Start with SMA
    result[seed] = np.mean(data[start : seed + 1])

    # Calculate EMA
    for i in range(seed + 1, len(data)):
        result[i] = (data[i] - result[i - 1]) * multiplier + result[i - 1]

    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        # Flat series has neither gains nor losses
        return 50.0 if avg_gain == 0 else 100.0
    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def rsi(closes: np.ndarray, period: int = 14) -> np.ndarray:
    """Relative Strength Index (Wilder smoothing). First defined at index `period`."""
    if len(closes) < period + 1:
        return np.full(len(closes), np.nan)

    # Calculate price changes
    deltas = np.diff(closes)

    # Separate gains and losses
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    # First average
    avg_gain = np.mean(gains[:period])
    avg_loss = np.mean(losses[:period])

    result = np.full(len(closes), np.nan)
    result[period] = _rsi_value(avg_gain, avg_loss)

    # Subsequent RSI values using smoothed averages
    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        result[i + 1] = _rsi_value(avg_gain, avg_loss)

    return result


def macd(
    closes: np.ndarray,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    MACD (Moving Average Convergence Divergence).

    The line is defined from index `slow_period - 1`; the signal line is an
    EMA of the defined part of the line, so the full triple is defined from
    index `slow_period + signal_period - 2` (33 for 12/26/9).

    Returns: (macd_line, signal_line, histogram)
    """
    fast_ema = ema(closes, fast_period)
    slow_ema = ema(closes, slow_period)

    macd_line = fast_ema - slow_ema

    # Signal line is EMA of MACD line
    signal_line = ema(macd_line, signal_period)

    # Histogram
    histogram = macd_line - signal_line

    return macd_line, signal_line, histogram


def macd_offset(slow_period: int = 26, signal_period: int = 9) -> int:
    """First window index where MACD line, signal and histogram are all defined."""
    return slow_period + signal_period - 2


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def bollinger_bands(
    closes: np.ndarray, period: int = 20, std_dev: float = 2.0
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Bollinger Bands (population standard deviation of the trailing closes).

    Returns: (upper, middle, lower)
    """
    middle = sma(closes, period)

    # Standard deviation
    std = np.full(len(closes), np.nan)
    for i in range(period - 1, len(closes)):
        std[i] = np.std(closes[i - period + 1 : i + 1])

    upper = middle + (std_dev * std)
    lower = middle - (std_dev * std)

    return upper, middle, lower


# =============================================================================
# VOLUME
# =============================================================================


def average_volume(volumes: np.ndarray, period: int = 20) -> float:
    """Mean volume of the trailing `period` candles (fewer if the series is shorter)."""
    if len(volumes) == 0:
        return 0.0
    return float(np.mean(volumes[-period:]))


# =============================================================================
# SUPPORT/RESISTANCE
# =============================================================================


def fibonacci_levels(
    highs: np.ndarray, lows: np.ndarray, ratios: Sequence[float] = FIB_RATIOS
) -> dict[float, float] | None:
    """
    Fibonacci retracement levels measured down from the highest high.

    Ratio 0 is the high and ratio 1 is exactly the low.
    Returns None for an empty series.
    """
    if len(highs) == 0 or len(lows) == 0:
        return None

    high = float(np.max(highs))
    low = float(np.min(lows))
    diff = high - low

    levels = {}
    for ratio in ratios:
        if ratio == 1:
            levels[ratio] = low
        else:
            levels[ratio] = high - ratio * diff
    return levels


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def to_optional(value: float) -> float | None:
    """NaN -> None, anything else -> plain float."""
    return None if np.isnan(value) else float(value)
