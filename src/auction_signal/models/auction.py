"""Auction telemetry records and the derived values built from them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


@dataclass
class AuctionRecord:
    """Mutable telemetry for one in-flight auction, owned by the aggregator."""

    auction_id: str
    start_time: int
    ad_unit_count: int = 0
    bidder_request_count: int = 0
    bid_response_count: int = 0
    no_bid_count: int = 0
    cpm_values: list[float] = field(default_factory=list)
    # dict keys keep first-seen order for the payload bidder list
    bidders_seen: Dict[str, None] = field(default_factory=dict)


class CpmStatistics(BaseModel):
    avg: float
    max: float
    min: float
    median: float

    model_config = ConfigDict(frozen=True)


class AuctionSnapshot(BaseModel):
    """Immutable view of a finalized auction."""

    auction_id: str
    start_time: int
    end_time: int
    ad_unit_count: int = Field(..., ge=0)
    bidder_request_count: int = Field(..., ge=0)
    bid_response_count: int = Field(..., ge=0)
    no_bid_count: int = Field(..., ge=0)
    cpm_values: Tuple[float, ...] = ()
    bidders: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def duration_ms(self) -> int:
        return self.end_time - self.start_time

    @property
    def unique_bidder_count(self) -> int:
        return len(self.bidders)

    @property
    def fill_rate(self) -> float:
        """Unrounded ratio of bid responses to bid requests."""

        if self.bidder_request_count <= 0:
            return 0.0
        return self.bid_response_count / self.bidder_request_count


class ContentContext(BaseModel):
    """Page content hints attached to both payload variants."""

    language: Optional[str] = None
    keywords: Optional[Tuple[str, ...]] = None
    source: str = "ortb2"

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)
