"""Auction telemetry aggregation, demand signal scoring and vendor fan-out."""

from .adapter import ADAPTER_CODE, ADAPTER_VERSION, AuctionSignalAdapter, EventType
from .errors import ConfigurationError

__all__ = [
    "ADAPTER_CODE",
    "ADAPTER_VERSION",
    "AuctionSignalAdapter",
    "ConfigurationError",
    "EventType",
]
