"""Analytics adapter routing auction engine events to aggregation and dispatch."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Mapping, Optional

from auction_signal.aggregator import AuctionAggregator
from auction_signal.config import AdapterConfig, parse_adapter_options
from auction_signal.constants import ADAPTER_CODE, ADAPTER_VERSION, LOG_PREFIX
from auction_signal.context import resolve_content_context
from auction_signal.dispatch import VendorDispatcher
from auction_signal.errors import ConfigurationError
from auction_signal.payload import PageEnvironment, PayloadBundle, build_payloads


logger = logging.getLogger("uvicorn.error")
logger.setLevel(logging.INFO)


class EventType(str, Enum):
    AUCTION_INIT = "auctionInit"
    BID_REQUESTED = "bidRequested"
    BID_RESPONSE = "bidResponse"
    NO_BID = "noBid"
    AUCTION_END = "auctionEnd"


def _sequence_length(value: Any) -> int:
    return len(value) if isinstance(value, (list, tuple)) else 0


class AuctionSignalAdapter:
    """Collects auction telemetry and sends it to the configured vendors.

    Events are ignored until :meth:`enable` accepts a configuration.
    :meth:`track` never raises: malformed events, missing auctions and
    failing vendors are logged and absorbed.
    """

    code = ADAPTER_CODE
    version = ADAPTER_VERSION

    def __init__(
        self,
        *,
        environment: Optional[PageEnvironment] = None,
        dispatcher: Optional[VendorDispatcher] = None,
        aggregator: Optional[AuctionAggregator] = None,
        global_ortb2: Optional[Mapping[str, Any]] = None,
    ):
        self.environment = environment or PageEnvironment()
        self.dispatcher = dispatcher or VendorDispatcher()
        self.aggregator = aggregator or AuctionAggregator()
        self.global_ortb2: dict[str, Any] = dict(global_ortb2 or {})
        self.config: Optional[AdapterConfig] = None

    @property
    def enabled(self) -> bool:
        return self.config is not None

    def enable(self, options: Any) -> bool:
        """Validate ``options`` and start tracking; returns False if rejected."""

        try:
            config = parse_adapter_options(options)
        except ConfigurationError as exc:
            logger.error("%s %s", LOG_PREFIX, exc)
            return False
        self.config = config
        logger.info("%s Enabled with config: %s", LOG_PREFIX, config.describe())
        return True

    def disable(self) -> None:
        self.config = None
        self.aggregator.clear()

    def set_global_ortb2(self, ortb2: Optional[Mapping[str, Any]]) -> None:
        self.global_ortb2 = dict(ortb2 or {})

    def track(self, event_type: Any, args: Any) -> None:
        if not self.enabled:
            return
        try:
            event = EventType(event_type)
        except ValueError:
            return
        try:
            if not isinstance(args, Mapping):
                logger.warning("%s Ignoring %s event without arguments", LOG_PREFIX, event.value)
                return
            auction_id = args.get("auctionId")
            if not isinstance(auction_id, str) or not auction_id:
                logger.warning("%s Ignoring %s event without auctionId", LOG_PREFIX, event.value)
                return
            self._handle(event, auction_id, args)
        except Exception:
            logger.exception("%s Failed to handle %s event", LOG_PREFIX, event.value)

    def _handle(self, event: EventType, auction_id: str, args: Mapping[str, Any]) -> None:
        if event is EventType.AUCTION_INIT:
            self.aggregator.begin(
                auction_id,
                start_time=args.get("timestamp") or None,
                ad_unit_count=_sequence_length(args.get("adUnits")),
            )
        elif event is EventType.BID_REQUESTED:
            self.aggregator.record_bid_request(
                auction_id,
                args.get("bidderCode"),
                _sequence_length(args.get("bids")),
            )
        elif event is EventType.BID_RESPONSE:
            self.aggregator.record_bid_response(auction_id, args.get("cpm"))
        elif event is EventType.NO_BID:
            self.aggregator.record_no_bid(auction_id)
        elif event is EventType.AUCTION_END:
            self.handle_auction_end(auction_id, args)

    def handle_auction_end(self, auction_id: str, args: Mapping[str, Any]) -> Optional[PayloadBundle]:
        """Finalize the auction, build its payloads and schedule vendor sends."""

        snapshot = self.aggregator.finalize(auction_id, args.get("auctionEnd") or None)
        if snapshot is None or self.config is None:
            return None

        context = resolve_content_context(args, self.global_ortb2)
        bundle = build_payloads(
            snapshot,
            environment=self.environment.with_overrides(args),
            publisher_id=self.config.publisher_id,
            context=context,
        )
        if context is not None:
            logger.info("%s Content context added to payloads: %s", LOG_PREFIX, context.to_wire())

        logger.info("%s Sending telemetry to configured vendors", LOG_PREFIX)
        self.dispatcher.dispatch(self.config, bundle)
        return bundle
