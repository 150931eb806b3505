"""
Candle Feed Manager

Drives the session manager from an external candle source:
- One asyncio task per timeframe
- Seed from history, then apply streamed candles in order
- Auto-reconnect with exponential backoff
- Resubscribe when the session moves to another symbol
"""

import asyncio
import logging
from enum import Enum
from typing import Optional

from confluence.core.config import Settings, get_settings
from confluence.services.session.manager import SessionManager, get_session_manager
from confluence.services.streaming.interface import CandleSource

logger = logging.getLogger(__name__)


class FeedState(str, Enum):
    STOPPED = "stopped"
    CONNECTING = "connecting"
    STREAMING = "streaming"
    RECONNECTING = "reconnecting"


class CandleFeedManager:
    """
    Manages the candle streams of every configured timeframe.

    Usage:
        feed = CandleFeedManager(source)
        await feed.start()
        # Candles are pushed into the session manager as they arrive
        await feed.stop()
    """

    def __init__(
        self,
        source: CandleSource,
        session: Optional[SessionManager] = None,
        settings: Optional[Settings] = None,
    ):
        self._source = source
        self._session = session or get_session_manager()
        self._settings = settings or get_settings()
        self._tasks: dict[str, asyncio.Task] = {}
        self._states: dict[str, FeedState] = {}
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def running_timeframes(self) -> list[str]:
        return [tf for tf, task in self._tasks.items() if not task.done()]

    def state(self, timeframe: str) -> FeedState:
        return self._states.get(timeframe, FeedState.STOPPED)

    async def start(self) -> bool:
        """Start one stream task per timeframe."""
        if self._running:
            logger.warning("Candle feed already running")
            return True

        self._running = True
        for timeframe in self._session.timeframes:
            self._states[timeframe] = FeedState.CONNECTING
            self._tasks[timeframe] = asyncio.create_task(
                self._stream_loop(timeframe), name=f"candle-feed-{timeframe}"
            )
        logger.info(f"Candle feed started for {self._session.symbol} {self._session.timeframes}")
        return True

    async def stop(self) -> None:
        """Cancel every stream task."""
        self._running = False

        for task in self._tasks.values():
            task.cancel()
        for task in self._tasks.values():
            try:
                await task
            except asyncio.CancelledError:
                pass

        self._tasks.clear()
        self._states = {tf: FeedState.STOPPED for tf in self._states}
        logger.info("Candle feed stopped")

    async def switch_symbol(self, symbol: str) -> None:
        """Move the session to another symbol and resubscribe every timeframe."""
        was_running = self._running
        if was_running:
            await self.stop()

        self._session.switch_symbol(symbol)

        if was_running:
            await self.start()

    # ============ Stream Loop ============

    async def _stream_loop(self, timeframe: str) -> None:
        """Seed, stream, and reconnect until stopped."""
        reconnect_delay = self._settings.feed_reconnect_delay

        while self._running:
            try:
                symbol = self._session.symbol
                history = await self._source.fetch_history(
                    symbol, timeframe, self._settings.history_limit
                )
                seeded = await asyncio.to_thread(
                    self._session.seed, timeframe, history, symbol
                )

                if seeded:
                    self._states[timeframe] = FeedState.STREAMING
                    reconnect_delay = self._settings.feed_reconnect_delay

                    async for candle in self._source.stream(symbol, timeframe):
                        if self._session.symbol != symbol:
                            break
                        # Indicator recompute is CPU-bound
                        await asyncio.to_thread(
                            self._session.on_candle, timeframe, candle, symbol
                        )

                if self._session.symbol != symbol:
                    logger.info(
                        f"[{timeframe}] Symbol changed to {self._session.symbol}, resubscribing"
                    )
                    self._states[timeframe] = FeedState.CONNECTING
                    continue

                logger.warning(f"[{timeframe}] Candle stream ended")

            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"[{timeframe}] Candle stream error: {e}")

            if not self._running:
                break

            self._states[timeframe] = FeedState.RECONNECTING
            logger.info(f"[{timeframe}] Reconnecting in {reconnect_delay}s...")
            await asyncio.sleep(reconnect_delay)
            reconnect_delay = min(
                reconnect_delay * 2,
                self._settings.feed_max_reconnect_delay,
            )


# Singleton instance
_feed_manager: Optional[CandleFeedManager] = None


def get_feed_manager() -> Optional[CandleFeedManager]:
    """The running feed manager, if one was started."""
    return _feed_manager


async def start_feed_manager(
    source: CandleSource, session: Optional[SessionManager] = None
) -> CandleFeedManager:
    """Start the candle feed manager."""
    global _feed_manager
    if _feed_manager is None:
        _feed_manager = CandleFeedManager(source, session=session)
    await _feed_manager.start()
    return _feed_manager


async def stop_feed_manager() -> None:
    """Stop the candle feed manager."""
    global _feed_manager
    if _feed_manager:
        await _feed_manager.stop()
        _feed_manager = None
