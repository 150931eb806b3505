"""
Tests for the candle feed manager.
Tests seeding, streaming, reconnects, symbol switches and shutdown
against fake sources.
"""

import asyncio

import pytest

from confluence.services.indicators import IndicatorService
from confluence.services.session import SessionManager
from confluence.services.streaming import CandleFeedManager, FeedState
from tests.conftest import flat_candles, make_candle

PRICES = {"BNBUSDT": 100.0, "ETHUSDT": 600.0}


async def wait_until(predicate, timeout: float = 2.0) -> None:
    async def poll():
        while not predicate():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(poll(), timeout=timeout)


class FakeSource:
    """Candle source double: 5 history candles, 3 live ones, then idles."""

    def __init__(self, history_failures: int = 0):
        self.history_failures = history_failures
        self.history_calls = 0
        self.fetched: list[tuple[str, str]] = []
        self.delivered: dict[tuple[str, str], asyncio.Event] = {}

    def _event(self, symbol: str, timeframe: str) -> asyncio.Event:
        return self.delivered.setdefault((symbol, timeframe), asyncio.Event())

    async def fetch_history(self, symbol, timeframe, limit):
        self.history_calls += 1
        if self.history_failures > 0:
            self.history_failures -= 1
            raise ConnectionError("history endpoint down")
        self.fetched.append((symbol, timeframe))
        return flat_candles(5, price=PRICES[symbol])

    async def stream(self, symbol, timeframe):
        for i in range(5, 8):
            yield make_candle(i, close=PRICES[symbol])
        self._event(symbol, timeframe).set()
        await asyncio.Event().wait()

    async def wait_delivered(self, timeframe: str, symbol: str = "BNBUSDT") -> None:
        await asyncio.wait_for(self._event(symbol, timeframe).wait(), timeout=2.0)


class QueueSource:
    """Candle source double whose live candles are pushed by the test."""

    def __init__(self):
        self.fetched: list[tuple[str, str]] = []
        self.queues: dict[tuple[str, str], asyncio.Queue] = {}

    def queue(self, symbol: str, timeframe: str) -> asyncio.Queue:
        return self.queues.setdefault((symbol, timeframe), asyncio.Queue())

    async def fetch_history(self, symbol, timeframe, limit):
        self.fetched.append((symbol, timeframe))
        return flat_candles(5, price=PRICES[symbol])

    async def stream(self, symbol, timeframe):
        queue = self.queue(symbol, timeframe)
        while True:
            yield await queue.get()


@pytest.fixture
def session(test_settings, stub_signals) -> SessionManager:
    return SessionManager(
        settings=test_settings,
        indicator_service=IndicatorService(),
        signal_service=stub_signals,
    )


class TestCandleFeed:
    """Tests for CandleFeedManager"""

    @pytest.mark.asyncio
    async def test_seed_then_stream(self, session, test_settings):
        source = FakeSource()
        feed = CandleFeedManager(source, session=session, settings=test_settings)

        await feed.start()
        try:
            for tf in session.timeframes:
                await source.wait_delivered(tf)

            assert feed.is_running
            assert sorted(feed.running_timeframes) == ["1h", "5m"]
            for tf in session.timeframes:
                assert feed.state(tf) == FeedState.STREAMING
                assert len(session.coordinator(tf)) == 8
            # Three live candles per timeframe, each a fresh signal
            assert len(session.alert_history) == 6
            assert session.trade_setup is not None
        finally:
            await feed.stop()

    @pytest.mark.asyncio
    async def test_reconnects_after_failure(self, session, test_settings):
        source = FakeSource(history_failures=2)
        feed = CandleFeedManager(source, session=session, settings=test_settings)

        await feed.start()
        try:
            for tf in session.timeframes:
                await source.wait_delivered(tf)

            assert source.history_calls == 4
            assert all(feed.state(tf) == FeedState.STREAMING for tf in session.timeframes)
        finally:
            await feed.stop()

    @pytest.mark.asyncio
    async def test_stop(self, session, test_settings):
        source = FakeSource()
        feed = CandleFeedManager(source, session=session, settings=test_settings)
        await feed.start()
        await source.wait_delivered("5m")

        await feed.stop()

        assert not feed.is_running
        assert feed.running_timeframes == []
        assert feed.state("5m") == FeedState.STOPPED
        assert feed.state("1h") == FeedState.STOPPED

    @pytest.mark.asyncio
    async def test_start_twice(self, session, test_settings):
        feed = CandleFeedManager(FakeSource(), session=session, settings=test_settings)

        await feed.start()
        try:
            assert await feed.start() is True
            assert len(feed.running_timeframes) == 2
        finally:
            await feed.stop()

    def test_unknown_timeframe_is_stopped(self, session, test_settings):
        feed = CandleFeedManager(FakeSource(), session=session, settings=test_settings)

        assert feed.state("4h") == FeedState.STOPPED


class TestSymbolSwitch:
    """The feed follows the session onto a new symbol"""

    @pytest.mark.asyncio
    async def test_switch_symbol_mid_stream(self, session, test_settings):
        source = FakeSource()
        feed = CandleFeedManager(source, session=session, settings=test_settings)

        await feed.start()
        try:
            for tf in session.timeframes:
                await source.wait_delivered(tf)

            await feed.switch_symbol("ETHUSDT")
            for tf in session.timeframes:
                await source.wait_delivered(tf, symbol="ETHUSDT")

            assert feed.is_running
            assert session.symbol == "ETHUSDT"
            assert ("ETHUSDT", "5m") in source.fetched
            assert ("ETHUSDT", "1h") in source.fetched
            for tf in session.timeframes:
                closes = {c.close for c in session.coordinator(tf).candles}
                assert closes == {600.0}
            assert {a.price for a in session.alert_history} == {600.0}
            assert session.trade_setup.entry_price == 600.0
        finally:
            await feed.stop()

    @pytest.mark.asyncio
    async def test_switch_while_stopped(self, session, test_settings):
        feed = CandleFeedManager(FakeSource(), session=session, settings=test_settings)

        await feed.switch_symbol("ETHUSDT")

        assert session.symbol == "ETHUSDT"
        assert not feed.is_running

    @pytest.mark.asyncio
    async def test_session_switched_directly(self, session, test_settings):
        """Candles still arriving for the old symbol are dropped, then the feed resubscribes"""
        source = QueueSource()
        feed = CandleFeedManager(source, session=session, settings=test_settings)

        await feed.start()
        try:
            await wait_until(lambda: ("BNBUSDT", "5m") in source.fetched)
            await wait_until(lambda: len(session.coordinator("5m")) == 5)

            session.switch_symbol("ETHUSDT")
            await source.queue("BNBUSDT", "5m").put(make_candle(5, close=999.0))
            await wait_until(lambda: ("ETHUSDT", "5m") in source.fetched)
            await wait_until(lambda: len(session.coordinator("5m")) == 5)

            closes = {c.close for c in session.coordinator("5m").candles}
            assert closes == {600.0}
            assert session.alert_history == []
            assert session.trade_setup is None
        finally:
            await feed.stop()
