"""Canonical auction models shared across aggregation, scoring and payloads."""

from .auction import AuctionRecord, AuctionSnapshot, ContentContext, CpmStatistics

__all__ = ["AuctionRecord", "AuctionSnapshot", "ContentContext", "CpmStatistics"]
