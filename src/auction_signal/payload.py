"""Build the full and index payload variants for an ended auction."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from auction_signal.constants import ADAPTER_VERSION
from auction_signal.models import AuctionSnapshot, ContentContext, CpmStatistics
from auction_signal.scoring import compute_cpm_stats, compute_signal, round2


class PageEnvironment(BaseModel):
    """Page level values a browser host would read from its window."""

    domain: str = ""
    page_path: str = "/"
    user_agent: str = ""
    host_version: str = "unknown"

    model_config = ConfigDict(frozen=True)

    def with_overrides(self, args: Mapping[str, Any]) -> "PageEnvironment":
        """Apply ``domain``/``pageUrl``/``userAgent`` carried by an event."""

        update: dict[str, str] = {}
        for key, attr in (("domain", "domain"), ("pageUrl", "page_path"), ("userAgent", "user_agent")):
            value = args.get(key)
            if isinstance(value, str) and value:
                update[attr] = value
        return self.model_copy(update=update) if update else self


class _WirePayload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping an absent content context."""

        wire = self.model_dump(mode="json", by_alias=True, exclude={"content_context"})
        context: Optional[ContentContext] = getattr(self, "content_context", None)
        if context is not None:
            wire["contentContext"] = context.to_wire()
        return wire


class FullPayload(_WirePayload):
    domain: str
    page_url: str = Field(alias="pageUrl")
    publisher_id: Optional[str] = Field(alias="publisherId")
    timestamp: str
    auction_id: str = Field(alias="auctionId")
    adapter_version: str = Field(alias="adapterVersion")
    pbjs_version: str = Field(alias="pbjsVersion")
    user_agent: str = Field(alias="userAgent")
    ad_units: int = Field(alias="adUnits")
    bidder_requests: int = Field(alias="bidderRequests")
    bid_responses: int = Field(alias="bidResponses")
    no_bids: int = Field(alias="noBids")
    unique_bidders: int = Field(alias="uniqueBidders")
    bidder_list: Tuple[str, ...] = Field(alias="bidderList")
    cpm_stats: CpmStatistics = Field(alias="cpmStats")
    fill_rate: float = Field(alias="fillRate")
    auction_duration: int = Field(alias="auctionDuration")
    content_context: Optional[ContentContext] = Field(default=None, alias="contentContext")


class IndexPayload(_WirePayload):
    """Privacy preserving variant: no CPM detail and no bidder identity."""

    domain: str
    timestamp: str
    user_agent: str = Field(alias="userAgent")
    auction_signal: float = Field(alias="auctionSignal")
    ad_units: int = Field(alias="adUnits")
    unique_bidders: int = Field(alias="uniqueBidders")
    fill_rate: float = Field(alias="fillRate")
    content_context: Optional[ContentContext] = Field(default=None, alias="contentContext")


@dataclass(frozen=True)
class PayloadBundle:
    full: FullPayload
    index: IndexPayload
    signal: float
    cpm_stats: CpmStatistics


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_payloads(
    snapshot: AuctionSnapshot,
    *,
    environment: PageEnvironment,
    publisher_id: Optional[str] = None,
    context: Optional[ContentContext] = None,
    timestamp: Optional[str] = None,
) -> PayloadBundle:
    cpm_stats = compute_cpm_stats(snapshot.cpm_values)
    fill_rate = snapshot.fill_rate
    # the signal uses the unrounded ratio; payloads display the rounded one
    signal = compute_signal(fill_rate, cpm_stats.avg, snapshot.unique_bidder_count)
    display_fill_rate = round2(fill_rate)
    stamp = timestamp or iso_timestamp()

    full = FullPayload(
        domain=environment.domain,
        page_url=environment.page_path,
        publisher_id=publisher_id,
        timestamp=stamp,
        auction_id=snapshot.auction_id,
        adapter_version=ADAPTER_VERSION,
        pbjs_version=environment.host_version,
        user_agent=environment.user_agent,
        ad_units=snapshot.ad_unit_count,
        bidder_requests=snapshot.bidder_request_count,
        bid_responses=snapshot.bid_response_count,
        no_bids=snapshot.no_bid_count,
        unique_bidders=snapshot.unique_bidder_count,
        bidder_list=snapshot.bidders,
        cpm_stats=cpm_stats,
        fill_rate=display_fill_rate,
        auction_duration=snapshot.duration_ms,
        content_context=context,
    )
    index = IndexPayload(
        domain=environment.domain,
        timestamp=stamp,
        user_agent=environment.user_agent,
        auction_signal=signal,
        ad_units=snapshot.ad_unit_count,
        unique_bidders=snapshot.unique_bidder_count,
        fill_rate=display_fill_rate,
        content_context=context,
    )
    return PayloadBundle(full=full, index=index, signal=signal, cpm_stats=cpm_stats)
