"""
Session API Endpoints

Exposes the session state of the active symbol and accepts candles pushed
by an external source.
"""

import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from confluence.schemas.market import Candle
from confluence.schemas.indicators import FibonacciLevels
from confluence.schemas.risk import RiskParams, TradeSetup
from confluence.schemas.signals import AlertHistoryItem, Signal
from confluence.schemas.session import SessionSnapshot, TimeframeView
from confluence.services.base import ValidationError
from confluence.services.session import SessionManager, get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter()


class CandleIngestResponse(BaseModel):
    """Result of pushing one candle."""
    timeframe: str
    signal: Optional[Signal] = None


class BalanceUpdate(BaseModel):
    balance: Union[float, str]


class BalanceResponse(BaseModel):
    account_balance: float


class PrimaryTimeframeUpdate(BaseModel):
    timeframe: str


def _to_http(e: ValidationError) -> HTTPException:
    if "timeframes" in e.details:
        return HTTPException(status_code=404, detail=e.message)
    return HTTPException(status_code=422, detail=e.message)


@router.get("", response_model=SessionSnapshot)
async def get_session(session: SessionManager = Depends(get_session_manager)):
    """Symbol, per-timeframe status, signal feed, alert log and trade setup."""
    return session.snapshot()


@router.get("/timeframes/{timeframe}", response_model=TimeframeView)
async def get_timeframe(timeframe: str, session: SessionManager = Depends(get_session_manager)):
    """Candle window and aligned indicators of one timeframe."""
    try:
        return session.view(timeframe)
    except ValidationError as e:
        raise _to_http(e)


@router.get("/timeframes/{timeframe}/fibonacci", response_model=FibonacciLevels)
async def get_fibonacci(timeframe: str, session: SessionManager = Depends(get_session_manager)):
    """Retracement levels over the trailing candles of one timeframe."""
    try:
        levels = session.fibonacci(timeframe)
    except ValidationError as e:
        raise _to_http(e)
    if levels is None:
        raise HTTPException(status_code=404, detail=f"No candles for {timeframe}")
    return levels


@router.post("/timeframes/{timeframe}/candles", response_model=CandleIngestResponse)
async def push_candle(
    timeframe: str,
    candle: Candle,
    session: SessionManager = Depends(get_session_manager),
):
    """Apply one candle (final or in-progress) to a timeframe."""
    try:
        signal = session.on_candle(timeframe, candle)
    except ValidationError as e:
        raise _to_http(e)
    return CandleIngestResponse(timeframe=timeframe, signal=signal)


@router.get("/signals", response_model=list[Signal])
async def get_signal_feed(session: SessionManager = Depends(get_session_manager)):
    """Rolling all-timeframe signal feed, oldest first."""
    return session.signal_feed


@router.get("/alerts", response_model=list[AlertHistoryItem])
async def get_alert_history(session: SessionManager = Depends(get_session_manager)):
    """Alert log, newest first."""
    return session.alert_history


@router.get("/trade-setup", response_model=TradeSetup)
async def get_trade_setup(session: SessionManager = Depends(get_session_manager)):
    """Trade setup for the latest primary-timeframe signal."""
    setup = session.trade_setup
    if setup is None:
        raise HTTPException(status_code=404, detail="No trade setup")
    return setup


@router.put("/balance", response_model=BalanceResponse)
async def put_balance(
    update: BalanceUpdate, session: SessionManager = Depends(get_session_manager)
):
    """Latest account balance from the account provider."""
    try:
        balance = session.set_account_balance(update.balance)
    except ValidationError as e:
        raise _to_http(e)
    return BalanceResponse(account_balance=balance)


@router.put("/risk", response_model=RiskParams)
async def put_risk_params(
    params: RiskParams, session: SessionManager = Depends(get_session_manager)
):
    """Replace the risk settings used for trade sizing."""
    try:
        return session.update_risk_params(params)
    except ValidationError as e:
        raise _to_http(e)


@router.put("/primary-timeframe", response_model=SessionSnapshot)
async def put_primary_timeframe(
    update: PrimaryTimeframeUpdate,
    session: SessionManager = Depends(get_session_manager),
):
    """Choose which timeframe's signals produce trade setups."""
    try:
        session.set_primary_timeframe(update.timeframe)
    except ValidationError as e:
        raise _to_http(e)
    return session.snapshot()
