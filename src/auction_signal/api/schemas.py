"""Pydantic models for API I/O."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class EventEnvelope(BaseModel):
    event_type: str = Field(..., alias="eventType", min_length=1)
    args: Dict[str, Any] = Field(default_factory=dict)


class EventsAccepted(BaseModel):
    accepted: int
    active_auctions: int


class HealthResponse(BaseModel):
    status: str
    enabled: bool
    active_auctions: int


__all__ = ["EventEnvelope", "EventsAccepted", "HealthResponse"]
