"""HTTP ingest service for auction engine events."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from fastapi import Body, FastAPI, HTTPException

from auction_signal.adapter import AuctionSignalAdapter
from auction_signal.api.schemas import EventEnvelope, EventsAccepted, HealthResponse
from auction_signal.config_loader import AdapterOptionsFile
from auction_signal.dispatch import HttpSender


def build_adapter(options_file: Optional[AdapterOptionsFile]) -> AuctionSignalAdapter:
    if options_file is None:
        return AuctionSignalAdapter()
    adapter = AuctionSignalAdapter(
        environment=options_file.environment(),
        global_ortb2=options_file.ortb2,
    )
    adapter.enable(options_file.options)
    return adapter


def create_app(adapter: Optional[AuctionSignalAdapter] = None) -> FastAPI:
    if adapter is None:
        adapter = build_adapter(AdapterOptionsFile.from_env())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        adapter.disable()
        sender = adapter.dispatcher.sender
        if isinstance(sender, HttpSender):
            await sender.aclose()

    app = FastAPI(title="auction signal analytics", lifespan=lifespan)
    app.state.adapter = adapter

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            status="ok",
            enabled=adapter.enabled,
            active_auctions=len(adapter.aggregator),
        )

    @app.post("/events", response_model=EventsAccepted)
    async def ingest_events(
        events: Union[EventEnvelope, List[EventEnvelope]] = Body(...),
    ) -> EventsAccepted:
        if not adapter.enabled:
            raise HTTPException(status_code=503, detail="Adapter is not enabled")
        envelopes = events if isinstance(events, list) else [events]
        for envelope in envelopes:
            adapter.track(envelope.event_type, envelope.args)
        return EventsAccepted(accepted=len(envelopes), active_auctions=len(adapter.aggregator))

    @app.put("/ortb2")
    async def replace_ortb2(ortb2: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
        adapter.set_global_ortb2(ortb2)
        return {"status": "ok"}

    return app


__all__ = ["build_adapter", "create_app"]
