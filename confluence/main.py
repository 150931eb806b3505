"""
Confluence Trader - FastAPI Application

Main entry point for the session API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from confluence.core.config import settings
from confluence.api.v1 import router as api_v1_router
from confluence.services.streaming import CandleSource, start_feed_manager, stop_feed_manager

logger = logging.getLogger(__name__)


def create_app(candle_source: Optional[CandleSource] = None) -> FastAPI:
    """Build the application; a candle source enables the live feed."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logging.basicConfig(
            level=settings.log_level.upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")

        feed = None
        if settings.enable_live_data and candle_source is not None:
            feed = await start_feed_manager(candle_source)
        else:
            logger.info("Candle feed disabled (no source or enable_live_data=false)")

        yield

        logger.info("Shutting down...")
        if feed:
            await stop_feed_manager()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
        Confluence Trader API

        - **Candle windows**: one bounded window per timeframe
        - **Indicators**: EMA, RSI, MACD, Bollinger Bands, Fibonacci (NumPy)
        - **Signals**: multi-indicator confluence, deduplicated per timeframe
        - **Risk**: fixed-fractional sizing on the primary timeframe
        """,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    return app


app = create_app()
