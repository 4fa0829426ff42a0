"""
Source adapters for the upstream price feeds.

This module provides one uniform, failure-isolating query interface over
each kind of upstream feed.

Usage:
    from multioracle.src.adapters import AdapterDirectory, DirectFeedAdapter

    pyth = DirectFeedAdapter(feed_ids={"BTC": "e62df6c8b4a85fe1..."})
    reading = await pyth.query("BTC")  # PriceReading or None

    directory = AdapterDirectory()
    directory.register("pyth", pyth)
"""

from .base import (
    PRICE_SCALE,
    AdapterDirectory,
    PriceReading,
    PriceSourceAdapter,
    SourceConfigError,
    SourceFailure,
    SourceHTTPError,
    normalize_price,
)
from .direct import DirectFeedAdapter
from .registry import RegistryFeedAdapter
from .synthetic import Leg, SyntheticFeedAdapter

__all__ = [
    # Base classes and types
    "AdapterDirectory",
    "PriceReading",
    "PriceSourceAdapter",
    "SourceFailure",
    "SourceConfigError",
    "SourceHTTPError",
    "PRICE_SCALE",
    "normalize_price",
    # Adapter implementations
    "DirectFeedAdapter",
    "RegistryFeedAdapter",
    "SyntheticFeedAdapter",
    "Leg",
]
