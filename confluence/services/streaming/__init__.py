"""
Candle feed module for live multi-timeframe streaming.

Connects an external candle source to the session manager.
"""

from confluence.services.streaming.interface import CandleSource
from confluence.services.streaming.feed import (
    CandleFeedManager,
    FeedState,
    get_feed_manager,
    start_feed_manager,
    stop_feed_manager,
)

__all__ = [
    "CandleSource",
    "CandleFeedManager",
    "FeedState",
    "get_feed_manager",
    "start_feed_manager",
    "stop_feed_manager",
]
