"""Per-auction telemetry aggregation keyed by auction identifier."""

from __future__ import annotations

import logging
import math
import time
from numbers import Real
from typing import Callable, Dict, Optional

from auction_signal.constants import LOG_PREFIX
from auction_signal.models import AuctionRecord, AuctionSnapshot


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)


def now_ms() -> int:
    return int(time.time() * 1000)


def _is_positive_cpm(cpm: object) -> bool:
    if isinstance(cpm, bool) or not isinstance(cpm, Real):
        return False
    value = float(cpm)
    return not math.isnan(value) and value > 0


class AuctionAggregator:
    """Owns the table of in-flight auctions.

    Records are created by :meth:`begin`, updated by the ``record_*`` methods
    and removed exactly once by :meth:`finalize`. Operations on unknown ids
    are no-ops so duplicate or out-of-order event streams never raise.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self._clock = clock
        self._auctions: Dict[str, AuctionRecord] = {}

    def __len__(self) -> int:
        return len(self._auctions)

    def __contains__(self, auction_id: object) -> bool:
        return auction_id in self._auctions

    def begin(
        self,
        auction_id: str,
        start_time: Optional[int] = None,
        ad_unit_count: int = 0,
    ) -> None:
        if auction_id in self._auctions:
            logger.warning("%s Auction %s already active; replacing it", LOG_PREFIX, auction_id)
        self._auctions[auction_id] = AuctionRecord(
            auction_id=auction_id,
            start_time=self._clock() if start_time is None else int(start_time),
            ad_unit_count=max(0, int(ad_unit_count)),
        )
        logger.info(
            "%s Auction initialized: %s with %d ad units", LOG_PREFIX, auction_id, ad_unit_count
        )

    def record_bid_request(
        self, auction_id: str, bidder_code: Optional[str], requested_bid_count: int
    ) -> None:
        record = self._auctions.get(auction_id)
        if record is None:
            logger.warning("%s Auction %s not found in cache", LOG_PREFIX, auction_id)
            return
        record.bidder_request_count += max(0, int(requested_bid_count))
        if isinstance(bidder_code, str) and bidder_code:
            record.bidders_seen.setdefault(bidder_code, None)

    def record_bid_response(self, auction_id: str, cpm: object) -> None:
        record = self._auctions.get(auction_id)
        if record is None:
            logger.warning("%s Auction %s not found in cache", LOG_PREFIX, auction_id)
            return
        record.bid_response_count += 1
        if _is_positive_cpm(cpm):
            record.cpm_values.append(float(cpm))  # type: ignore[arg-type]

    def record_no_bid(self, auction_id: str) -> None:
        record = self._auctions.get(auction_id)
        if record is None:
            return
        record.no_bid_count += 1

    def finalize(self, auction_id: str, end_time: Optional[int] = None) -> Optional[AuctionSnapshot]:
        """Remove the auction and return its snapshot, or ``None`` if unknown."""

        record = self._auctions.pop(auction_id, None)
        if record is None:
            logger.warning("%s Auction %s not found in cache", LOG_PREFIX, auction_id)
            return None
        return AuctionSnapshot(
            auction_id=record.auction_id,
            start_time=record.start_time,
            end_time=self._clock() if end_time is None else int(end_time),
            ad_unit_count=record.ad_unit_count,
            bidder_request_count=record.bidder_request_count,
            bid_response_count=record.bid_response_count,
            no_bid_count=record.no_bid_count,
            cpm_values=tuple(record.cpm_values),
            bidders=tuple(record.bidders_seen),
        )

    def clear(self) -> None:
        self._auctions.clear()
