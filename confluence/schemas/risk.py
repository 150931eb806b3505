"""
CONTRACT 4: Risk Engine

Input: entry price + TradeSide + RiskParams
Output: TradeSetup

RiskParams carry the upstream validation (every field > 0). The engine
itself does not re-check them.
"""

from enum import Enum

from pydantic import BaseModel, Field


class TradeSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class RiskParams(BaseModel):
    """
    User's risk settings.
    Percentages are fractions (0.02 == 2%).
    """

    account_balance: float = Field(..., gt=0)
    risk_per_trade_percentage: float = Field(
        ...,
        gt=0,
        description="Fraction of the balance risked per trade",
    )
    stop_loss_percentage: float = Field(..., gt=0)
    take_profit_percentage: float = Field(..., gt=0)


class TradeSetup(BaseModel):
    """
    Proposed trade for the latest primary-timeframe signal.
    Superseded by the next primary-timeframe signal.
    """

    side: TradeSide
    entry_price: float
    stop_loss: float
    take_profit: float
    position_size: float
    risk_amount: float


class OrderRequest(BaseModel):
    """The single call shape handed to the order sink."""

    symbol: str
    side: TradeSide
    quantity: str = Field(..., description="Position size, 4 decimals")


class AccountBalance(BaseModel):
    """Balance line reported by the account provider."""

    asset: str
    free: str = "0"
    locked: str = "0"
