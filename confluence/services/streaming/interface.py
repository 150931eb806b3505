"""
Candle Source Interface

The exchange connection is external; the feed manager only needs these
two calls from it.
"""

from typing import AsyncIterator, Protocol

from confluence.schemas.market import Candle


class CandleSource(Protocol):
    """Push-delivered candle stream plus a historical backfill."""

    async def fetch_history(self, symbol: str, timeframe: str, limit: int) -> list[Candle]:
        """Most recent `limit` candles, oldest first, all final."""
        ...

    def stream(self, symbol: str, timeframe: str) -> AsyncIterator[Candle]:
        """Live candles for one timeframe, in delivery order."""
        ...
