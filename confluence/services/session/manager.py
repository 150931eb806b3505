"""
Session Manager Implementation

Fans a multi-timeframe candle stream out to one coordinator per timeframe,
keeps the alert log and signal feed, and sizes a trade for every signal on
the primary timeframe.
"""

import logging
import threading
from collections import deque
from contextlib import ExitStack
from typing import Iterable, Optional

from pydantic import ValidationError as PydanticValidationError

from confluence.core.config import Settings, get_settings
from confluence.schemas.market import Candle
from confluence.schemas.indicators import FibonacciLevels
from confluence.schemas.risk import (
    AccountBalance,
    OrderRequest,
    RiskParams,
    TradeSetup,
    TradeSide,
)
from confluence.schemas.signals import AlertHistoryItem, Signal, SignalType
from confluence.schemas.session import SessionSnapshot, TimeframeView
from confluence.services.base import ExternalAPIError, ValidationError
from confluence.services.indicators.service import IndicatorService
from confluence.services.signals.service import SignalService
from confluence.services.risk.service import (
    RiskService,
    build_order_request,
    get_risk_service,
    parse_balance,
    resolve_account_balance,
)
from confluence.services.session.coordinator import TimeframeCoordinator
from confluence.services.session.interface import (
    CandleEvent,
    OrderSink,
    SessionServiceInterface,
    SignalCallback,
)

logger = logging.getLogger(__name__)


class SessionManager(SessionServiceInterface):
    """
    Session Manager for the active symbol.

    Usage:
        session = SessionManager()
        session.seed("1h", history)
        signal = session.on_candle("1h", candle)
        setup = session.trade_setup

    Locking: one lock per timeframe serializes apply -> recompute -> detect;
    one shared lock guards the alert log, feed, trade setup and risk inputs.
    Lock order is always timeframe lock, then shared lock. Coordinators are
    resolved under the timeframe lock, which switch_symbol also holds.
    """

    def __init__(
        self,
        symbol: Optional[str] = None,
        timeframes: Optional[list[str]] = None,
        primary_timeframe: Optional[str] = None,
        settings: Optional[Settings] = None,
        indicator_service: Optional[IndicatorService] = None,
        signal_service: Optional[SignalService] = None,
        risk_service: Optional[RiskService] = None,
    ):
        self.settings = settings or get_settings()
        self._symbol = (symbol or self.settings.default_symbol).upper()
        self._timeframes = list(timeframes or self.settings.timeframes)
        primary = primary_timeframe or self.settings.primary_timeframe
        if primary not in self._timeframes:
            raise ValidationError(
                self.name, f"Primary timeframe {primary} not in {self._timeframes}"
            )
        self._primary_timeframe = primary

        self._indicator_service = indicator_service
        self._signal_service = signal_service
        self._risk_service = risk_service or get_risk_service()

        self._lock = threading.Lock()
        self._timeframe_locks = {tf: threading.Lock() for tf in self._timeframes}
        self._coordinators: dict[str, TimeframeCoordinator] = {}
        self._alert_history: deque[AlertHistoryItem] = deque(
            maxlen=self.settings.alert_history_limit
        )
        self._signal_feed: deque[Signal] = deque(maxlen=self.settings.signal_feed_limit)
        self._trade_setup: Optional[TradeSetup] = None
        self._risk_params = self.settings.default_risk_params()
        self._callbacks: list[SignalCallback] = []

        self._build_coordinators()

    # ============ Properties ============

    @property
    def symbol(self) -> str:
        return self._symbol

    @property
    def timeframes(self) -> list[str]:
        return list(self._timeframes)

    @property
    def primary_timeframe(self) -> str:
        return self._primary_timeframe

    @property
    def alert_history(self) -> list[AlertHistoryItem]:
        """Newest first."""
        with self._lock:
            return list(self._alert_history)

    @property
    def signal_feed(self) -> list[Signal]:
        """Oldest first."""
        with self._lock:
            return list(self._signal_feed)

    @property
    def trade_setup(self) -> Optional[TradeSetup]:
        with self._lock:
            return self._trade_setup

    @property
    def risk_params(self) -> RiskParams:
        with self._lock:
            return self._risk_params

    @property
    def account_balance(self) -> float:
        return self.risk_params.account_balance

    # ============ Candle Routing ============

    def coordinator(self, timeframe: str) -> TimeframeCoordinator:
        self._check_timeframe(timeframe)
        return self._coordinators[timeframe]

    def _check_timeframe(self, timeframe: str) -> None:
        if timeframe not in self._timeframe_locks:
            raise ValidationError(
                self.name,
                f"Unknown timeframe {timeframe}",
                {"timeframes": self._timeframes},
            )

    def _is_stale(self, timeframe: str, symbol: Optional[str]) -> bool:
        """Caller holds the timeframe lock, so the symbol cannot change underneath."""
        if symbol is None or symbol.upper() == self._symbol:
            return False
        logger.debug(f"[{timeframe}] Dropped data for {symbol}, session is on {self._symbol}")
        return True

    def seed(
        self, timeframe: str, candles: Iterable[Candle], symbol: Optional[str] = None
    ) -> bool:
        """
        Load historical candles into one timeframe.

        When `symbol` is given and the session has moved to another symbol,
        the batch is dropped and False is returned.
        """
        self._check_timeframe(timeframe)
        with self._timeframe_locks[timeframe]:
            if self._is_stale(timeframe, symbol):
                return False
            self._coordinators[timeframe].seed(candles)
        return True

    async def execute(self, input_data: CandleEvent) -> Optional[Signal]:
        return self.on_candle(input_data.timeframe, input_data.candle)

    def on_candle(
        self, timeframe: str, candle: Candle, symbol: Optional[str] = None
    ) -> Optional[Signal]:
        self._check_timeframe(timeframe)
        with self._timeframe_locks[timeframe]:
            if self._is_stale(timeframe, symbol):
                return None
            update = self._coordinators[timeframe].on_candle(candle)
            if not update.propagate:
                return None
            if update.signal is None:
                logger.debug(f"[{timeframe}] Candle {candle.time} closed, no signal")
                return None
            self._record_signal(timeframe, update.signal)

        self._notify(timeframe, update.signal)
        return update.signal

    def _record_signal(self, timeframe: str, signal: Signal) -> None:
        with self._lock:
            self._alert_history.appendleft(AlertHistoryItem.from_signal(timeframe, signal))
            self._signal_feed.append(
                signal.model_copy(update={"reason": f"[{timeframe}] {signal.reason}"})
            )

            if timeframe == self._primary_timeframe:
                side = TradeSide.BUY if signal.type == SignalType.BUY else TradeSide.SELL
                self._trade_setup = self._risk_service.compute_trade_setup(
                    signal.price, self._risk_params, side
                )
                logger.info(
                    f"Trade setup {side.value} {self._symbol}: entry={signal.price} "
                    f"size={self._trade_setup.position_size:.4f}"
                )

    # ============ Signal Callbacks ============

    def add_signal_callback(self, callback: SignalCallback) -> None:
        """Add a callback to be called on each propagated signal."""
        self._callbacks.append(callback)

    def remove_signal_callback(self, callback: SignalCallback) -> None:
        """Remove a signal callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    def _notify(self, timeframe: str, signal: Signal) -> None:
        for callback in list(self._callbacks):
            try:
                callback(timeframe, signal)
            except Exception as e:
                logger.error(f"Signal callback failed: {e}")

    # ============ Account / Risk Settings ============

    def set_account_balance(self, value: float | str) -> float:
        """Latest balance from the account provider."""
        try:
            balance = parse_balance(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(self.name, f"Invalid balance {value!r}: {e}") from e
        if balance <= 0:
            raise ValidationError(self.name, f"Balance must be positive, got {balance}")

        with self._lock:
            self._risk_params = self._risk_params.model_copy(update={"account_balance": balance})
        return balance

    def update_balances(self, balances: Iterable[AccountBalance]) -> float:
        """Pick the quote-asset balance out of an account listing."""
        balance = resolve_account_balance(
            balances, self.settings.quote_asset, self.settings.default_account_balance
        )
        return self.set_account_balance(balance)

    def update_risk_params(self, params: RiskParams | dict) -> RiskParams:
        """Replace the risk settings; every field must be > 0."""
        try:
            validated = RiskParams.model_validate(
                params.model_dump() if isinstance(params, RiskParams) else params
            )
        except PydanticValidationError as e:
            raise ValidationError(self.name, "Invalid risk parameters", {"errors": e.errors()}) from e

        with self._lock:
            self._risk_params = validated
        logger.info(f"Risk parameters updated: {validated.model_dump()}")
        return validated

    def set_primary_timeframe(self, timeframe: str) -> None:
        self._check_timeframe(timeframe)
        with self._lock:
            self._primary_timeframe = timeframe
        logger.info(f"Primary timeframe set to {timeframe}")

    # ============ Trade Setup ============

    def consume_trade_setup(self) -> Optional[TradeSetup]:
        """Take the current setup, leaving none behind."""
        with self._lock:
            setup, self._trade_setup = self._trade_setup, None
        return setup

    async def execute_trade(self, order_sink: OrderSink) -> Optional[OrderRequest]:
        """
        Submit the current setup to the order sink.

        The setup is cleared only once the sink accepts the order.
        """
        setup = self.trade_setup
        if setup is None:
            return None

        order = build_order_request(self._symbol, setup)
        try:
            await order_sink.submit(order)
        except Exception as e:
            logger.error(f"Order placement failed: {e}")
            raise ExternalAPIError(self.name, f"Order placement failed: {e}") from e

        with self._lock:
            if self._trade_setup is setup:
                self._trade_setup = None
        logger.info(f"Order submitted: {order.side.value} {order.quantity} {order.symbol}")
        return order

    # ============ Symbol Lifecycle ============

    def switch_symbol(self, symbol: str) -> None:
        """Discard all state and start over for another symbol."""
        symbol = symbol.upper()
        with ExitStack() as stack:
            for tf in self._timeframes:
                stack.enter_context(self._timeframe_locks[tf])
            with self._lock:
                self._symbol = symbol
                self._alert_history.clear()
                self._signal_feed.clear()
                self._trade_setup = None
            self._build_coordinators()
        logger.info(f"Session switched to {symbol}")

    def _build_coordinators(self) -> None:
        self._coordinators = {
            tf: TimeframeCoordinator(
                tf,
                capacity=self.settings.window_capacity,
                min_signal_candles=self.settings.min_signal_candles,
                indicator_service=self._indicator_service,
                signal_service=self._signal_service,
            )
            for tf in self._timeframes
        }

    # ============ Views ============

    def view(self, timeframe: str) -> TimeframeView:
        self._check_timeframe(timeframe)
        with self._timeframe_locks[timeframe]:
            return self._coordinators[timeframe].view()

    def fibonacci(self, timeframe: str) -> Optional[FibonacciLevels]:
        self._check_timeframe(timeframe)
        with self._timeframe_locks[timeframe]:
            return self._coordinators[timeframe].fibonacci()

    def snapshot(self) -> SessionSnapshot:
        summaries = []
        for tf in self._timeframes:
            with self._timeframe_locks[tf]:
                summaries.append(self._coordinators[tf].summary())

        with self._lock:
            return SessionSnapshot(
                symbol=self._symbol,
                primary_timeframe=self._primary_timeframe,
                timeframes=summaries,
                signal_feed=list(self._signal_feed),
                alert_history=list(self._alert_history),
                trade_setup=self._trade_setup,
            )


# Singleton instance
_session_instance: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    """Get or create the session manager."""
    global _session_instance
    if _session_instance is None:
        _session_instance = SessionManager()
    return _session_instance


def reset_session_manager() -> None:
    """Drop the current session manager (next access builds a fresh one)."""
    global _session_instance
    _session_instance = None
