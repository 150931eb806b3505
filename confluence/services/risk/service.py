"""
Risk Engine Implementation

Fixed-fractional position sizing around a percentage stop and target.
PURE PYTHON - deterministic and auditable.
"""

import logging
import math
from typing import Iterable, Optional

from confluence.schemas.risk import (
    AccountBalance,
    OrderRequest,
    RiskParams,
    TradeSetup,
    TradeSide,
)
from confluence.services.risk.interface import RiskServiceInterface, RiskInput

logger = logging.getLogger(__name__)


def compute_trade_setup(entry_price: float, params: RiskParams, side: TradeSide) -> TradeSetup:
    """Stop, target and size for one entry."""
    risk_amount = params.account_balance * params.risk_per_trade_percentage

    if side == TradeSide.BUY:
        stop_loss = entry_price * (1 - params.stop_loss_percentage)
        take_profit = entry_price * (1 + params.take_profit_percentage)
    else:
        stop_loss = entry_price * (1 + params.stop_loss_percentage)
        take_profit = entry_price * (1 - params.take_profit_percentage)

    price_diff = abs(entry_price - stop_loss)
    position_size = risk_amount / price_diff if price_diff else math.inf

    return TradeSetup(
        side=side,
        entry_price=entry_price,
        stop_loss=stop_loss,
        take_profit=take_profit,
        position_size=position_size,
        risk_amount=risk_amount,
    )


def build_order_request(symbol: str, setup: TradeSetup) -> OrderRequest:
    """Order ticket for the sink: side from entry vs stop, size to 4 decimals."""
    side = TradeSide.BUY if setup.entry_price > setup.stop_loss else TradeSide.SELL
    return OrderRequest(symbol=symbol, side=side, quantity=f"{setup.position_size:.4f}")


def parse_balance(value: float | str) -> float:
    """Balance as reported by the account provider (number or numeric string)."""
    balance = float(value)
    if not math.isfinite(balance):
        raise ValueError(f"Balance must be finite, got {value!r}")
    return balance


def resolve_account_balance(
    balances: Iterable[AccountBalance], asset: str, default: float
) -> float:
    """Free amount of `asset`, or `default` when the account does not hold it."""
    for balance in balances:
        if balance.asset == asset:
            return parse_balance(balance.free)
    return default


class RiskService(RiskServiceInterface):
    """
    Risk Engine.

    Sizes a trade so that hitting the stop loses exactly the risk amount.
    """

    async def execute(self, input_data: RiskInput) -> TradeSetup:
        return self.compute_trade_setup(
            input_data.entry_price, input_data.params, input_data.side
        )

    def compute_trade_setup(
        self,
        entry_price: float,
        params: RiskParams,
        side: TradeSide,
    ) -> TradeSetup:
        setup = compute_trade_setup(entry_price, params, side)
        if math.isinf(setup.position_size):
            logger.warning(f"Degenerate risk: stop equals entry at {entry_price}")
        return setup


# Singleton instance
_service_instance: Optional[RiskService] = None


def get_risk_service() -> RiskService:
    """Get or create risk service instance."""
    global _service_instance
    if _service_instance is None:
        _service_instance = RiskService()
    return _service_instance
