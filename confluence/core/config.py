"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from confluence.schemas.risk import RiskParams


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Confluence Trader"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Session
    default_symbol: str = "BNBUSDT"
    timeframes: list[str] = ["5m", "15m", "1h", "4h", "1d"]
    primary_timeframe: str = "1h"

    # Candle windows
    window_capacity: int = 400
    history_limit: int = 250  # Candles requested when seeding a timeframe
    min_signal_candles: int = 100
    fibonacci_lookback: int = 100

    # Signal log sizes
    alert_history_limit: int = 50
    signal_feed_limit: int = 20

    # Account / Risk (Defaults)
    default_account_balance: float = 1000.0
    quote_asset: str = "USDT"
    risk_per_trade: float = 0.02
    stop_loss_percent: float = 0.015
    take_profit_percent: float = 0.045

    # Live feed
    enable_live_data: bool = False
    feed_reconnect_delay: float = 1.0
    feed_max_reconnect_delay: float = 60.0

    @model_validator(mode="after")
    def _check_primary_timeframe(self) -> "Settings":
        if self.primary_timeframe not in self.timeframes:
            raise ValueError(
                f"primary_timeframe {self.primary_timeframe!r} not in timeframes {self.timeframes}"
            )
        return self

    def default_risk_params(self, account_balance: float | None = None) -> "RiskParams":
        """Risk parameters built from the configured defaults."""
        from confluence.schemas.risk import RiskParams

        return RiskParams(
            account_balance=account_balance or self.default_account_balance,
            risk_per_trade_percentage=self.risk_per_trade,
            stop_loss_percentage=self.stop_loss_percent,
            take_profit_percentage=self.take_profit_percent,
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
