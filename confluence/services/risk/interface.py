"""
Risk Engine Service Interface

Defines the contract for the trade sizing layer.
"""

from abc import abstractmethod
from dataclasses import dataclass

from confluence.services.base import BaseService
from confluence.schemas.risk import RiskParams, TradeSetup, TradeSide


@dataclass
class RiskInput:
    """Input for trade sizing."""

    entry_price: float
    side: TradeSide
    params: RiskParams


class RiskServiceInterface(BaseService[RiskInput, TradeSetup]):
    """
    Risk Engine Contract.

    INPUT: RiskInput
        - entry_price: Signal price
        - side: BUY / SELL
        - params: Balance, risk fraction, stop / target fractions

    OUTPUT: TradeSetup
        - stop_loss, take_profit around the entry
        - risk_amount = balance * risk fraction
        - position_size = risk_amount / |entry - stop|

    PRECONDITION: stop_loss_percentage > 0. A zero stop distance yields an
    infinite position size; it is not rejected here.
    """

    @property
    def name(self) -> str:
        return "RiskService"

    @abstractmethod
    async def execute(self, input_data: RiskInput) -> TradeSetup:
        """Size a trade for the given entry."""
        pass

    @abstractmethod
    def compute_trade_setup(
        self,
        entry_price: float,
        params: RiskParams,
        side: TradeSide,
    ) -> TradeSetup:
        """Synchronous form of execute()."""
        pass
