"""
Risk Engine

CONTRACT:
    Input:  entry price + side + RiskParams
    Output: TradeSetup

RESPONSIBILITIES:
    - Place stop loss and take profit around the entry
    - Size the position so a stopped-out trade loses the risk amount
    - Build the order ticket handed to the order sink
    - Resolve the account balance reported by the account provider

PURE PYTHON - deterministic.
RiskParams must be validated upstream (all fields > 0).
"""

from confluence.services.risk.interface import RiskServiceInterface, RiskInput
from confluence.services.risk.service import (
    RiskService,
    build_order_request,
    compute_trade_setup,
    get_risk_service,
    parse_balance,
    resolve_account_balance,
)

__all__ = [
    "RiskServiceInterface",
    "RiskInput",
    "RiskService",
    "build_order_request",
    "compute_trade_setup",
    "get_risk_service",
    "parse_balance",
    "resolve_account_balance",
]
