"""
Session Manager Service Interface

Defines the contract between the session core and its external
collaborators (candle source, order sink, notification glue).
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from confluence.services.base import BaseService
from confluence.schemas.market import Candle
from confluence.schemas.risk import OrderRequest
from confluence.schemas.signals import Signal


@dataclass
class CandleEvent:
    """A candle tagged with the timeframe it belongs to."""

    timeframe: str
    candle: Candle


SignalCallback = Callable[[str, Signal], Any]


class OrderSink(Protocol):
    """Opaque order submission endpoint (exchange client)."""

    async def submit(self, order: OrderRequest) -> Any:
        ...


class SessionServiceInterface(BaseService[CandleEvent, Optional[Signal]]):
    """
    Session Manager Contract.

    INPUT: CandleEvent
        - timeframe: Which coordinator receives the candle
        - candle: Final or in-progress candle

    OUTPUT: Optional[Signal]
        - The signal propagated for this candle, None otherwise

    SIDE EFFECTS:
        - Alert log (newest first, capped)
        - Signal feed (oldest first, capped, reason tagged with timeframe)
        - TradeSetup replaced on primary-timeframe signals
    """

    @property
    def name(self) -> str:
        return "SessionManager"

    @abstractmethod
    async def execute(self, input_data: CandleEvent) -> Optional[Signal]:
        """Route one candle event."""
        pass

    @abstractmethod
    def on_candle(
        self, timeframe: str, candle: Candle, symbol: Optional[str] = None
    ) -> Optional[Signal]:
        """Synchronous form of execute(). Candles tagged with another symbol are dropped."""
        pass
