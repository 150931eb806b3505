"""
Tests for the session API.
Runs the FastAPI app in-process with a stubbed session.
"""

import pytest
from fastapi.testclient import TestClient

from confluence.main import create_app
from confluence.services.indicators import IndicatorService
from confluence.services.session import SessionManager, get_session_manager
from tests.conftest import flat_candles, make_candle


@pytest.fixture
def session(test_settings, stub_signals) -> SessionManager:
    return SessionManager(
        settings=test_settings,
        indicator_service=IndicatorService(),
        signal_service=stub_signals,
    )


@pytest.fixture
def client(session):
    app = create_app()
    app.dependency_overrides[get_session_manager] = lambda: session
    with TestClient(app) as client:
        yield client


def candle_json(index: int, close: float = 100.0, is_final: bool = True) -> dict:
    return make_candle(index, close=close, is_final=is_final).model_dump(by_alias=True)


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestSessionEndpoints:
    """Tests for /api/v1/session"""

    def test_snapshot(self, client):
        response = client.get("/api/v1/session")

        assert response.status_code == 200
        data = response.json()
        assert data["symbol"] == "BNBUSDT"
        assert data["primary_timeframe"] == "1h"
        assert [tf["timeframe"] for tf in data["timeframes"]] == ["5m", "1h"]
        assert data["trade_setup"] is None

    def test_push_candles(self, client, session):
        for i in range(3):
            response = client.post("/api/v1/session/timeframes/1h/candles", json=candle_json(i))
            assert response.status_code == 200

        data = response.json()
        assert data["timeframe"] == "1h"
        assert data["signal"]["type"] == "BUY"
        assert len(session.alert_history) == 1

    def test_push_in_progress_candle(self, client, session):
        session.seed("5m", flat_candles(5))

        response = client.post(
            "/api/v1/session/timeframes/5m/candles",
            json=candle_json(5, close=101.0, is_final=False),
        )

        assert response.status_code == 200
        assert session.coordinator("5m").candles[-1].is_final is False

    def test_unknown_timeframe(self, client):
        assert client.get("/api/v1/session/timeframes/4h").status_code == 404
        response = client.post("/api/v1/session/timeframes/4h/candles", json=candle_json(0))
        assert response.status_code == 404

    def test_timeframe_view(self, client, session):
        session.seed("1h", flat_candles(30))

        response = client.get("/api/v1/session/timeframes/1h")

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "ACTIVE"
        assert len(data["candles"]) == len(data["indicators"]) == 30

    def test_fibonacci(self, client, session):
        assert client.get("/api/v1/session/timeframes/1h/fibonacci").status_code == 404

        session.seed("1h", flat_candles(10, price=50.0))
        response = client.get("/api/v1/session/timeframes/1h/fibonacci")

        assert response.status_code == 200
        assert response.json()["high"] == 50.0

    def test_signals_and_alerts(self, client, session):
        session.seed("5m", flat_candles(5))
        session.on_candle("5m", make_candle(5))
        session.on_candle("5m", make_candle(6))

        feed = client.get("/api/v1/session/signals").json()
        alerts = client.get("/api/v1/session/alerts").json()

        assert [s["time"] for s in feed] == [make_candle(5).time, make_candle(6).time]
        assert feed[0]["reason"] == "[5m] stub confluence"
        assert [a["timestamp"] for a in alerts] == [make_candle(6).time, make_candle(5).time]

    def test_trade_setup(self, client, session):
        assert client.get("/api/v1/session/trade-setup").status_code == 404

        session.seed("1h", flat_candles(5))
        session.on_candle("1h", make_candle(5, close=100.0))
        response = client.get("/api/v1/session/trade-setup")

        assert response.status_code == 200
        assert response.json()["side"] == "BUY"
        assert response.json()["position_size"] == pytest.approx(20.0 / 1.5)


class TestSettingsEndpoints:
    """Tests for balance, risk and primary timeframe updates"""

    def test_balance_string(self, client, session):
        response = client.put("/api/v1/session/balance", json={"balance": "2500"})

        assert response.status_code == 200
        assert response.json() == {"account_balance": 2500.0}
        assert session.account_balance == 2500.0

    def test_invalid_balance(self, client, session):
        response = client.put("/api/v1/session/balance", json={"balance": "abc"})

        assert response.status_code == 422
        assert session.account_balance == 1000.0

    def test_update_risk(self, client, session):
        payload = {
            "account_balance": 3000,
            "risk_per_trade_percentage": 0.01,
            "stop_loss_percentage": 0.02,
            "take_profit_percentage": 0.05,
        }

        response = client.put("/api/v1/session/risk", json=payload)

        assert response.status_code == 200
        assert session.risk_params.stop_loss_percentage == 0.02

    def test_invalid_risk(self, client, session):
        payload = session.risk_params.model_dump()
        payload["risk_per_trade_percentage"] = 0

        response = client.put("/api/v1/session/risk", json=payload)

        assert response.status_code == 422
        assert session.risk_params.risk_per_trade_percentage == 0.02

    def test_primary_timeframe(self, client, session):
        response = client.put("/api/v1/session/primary-timeframe", json={"timeframe": "5m"})

        assert response.status_code == 200
        assert response.json()["primary_timeframe"] == "5m"
        assert session.primary_timeframe == "5m"

    def test_unknown_primary_timeframe(self, client, session):
        response = client.put("/api/v1/session/primary-timeframe", json={"timeframe": "1w"})

        assert response.status_code == 404
        assert session.primary_timeframe == "1h"
