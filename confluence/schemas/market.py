"""
CONTRACT 1: Candle Stream

Input: Candle values pushed per timeframe by the candle source
Output: Candle windows owned by the timeframe coordinators

Prices and volume are taken as delivered. High/low consistency with
open/close and volume sign are NOT validated here; malformed candles flow
into the indicators unchanged.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================


class Timeframe(str, Enum):
    M1 = "1m"
    M3 = "3m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H2 = "2h"
    H4 = "4h"
    H6 = "6h"
    H8 = "8h"
    H12 = "12h"
    D1 = "1d"
    D3 = "3d"
    W1 = "1w"
    MN1 = "1M"


class WindowOp(str, Enum):
    """How a candle was applied to its window."""

    APPEND = "APPEND"  # New period opened
    UPDATE = "UPDATE"  # In-progress period replaced in place


# =============================================================================
# CANDLE
# =============================================================================


class Candle(BaseModel):
    """Single candlestick for one period of one timeframe."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "time": 1717200000000,
                "open": 598.1,
                "high": 601.4,
                "low": 597.6,
                "close": 600.2,
                "volume": 10432.5,
                "isFinal": True,
            }
        },
    )

    time: int = Field(..., description="Period-open timestamp (ms)")
    open: float
    high: float
    low: float
    close: float
    volume: float
    is_final: bool = Field(
        default=True,
        alias="isFinal",
        description="False while the period is still in progress",
    )
