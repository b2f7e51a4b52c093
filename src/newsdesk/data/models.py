"""Persisted and served record shapes.

Fields are snake_case in Python and camelCase on the wire
(``impact_level`` <-> ``impactLevel``). Both spellings are accepted on input.
"""
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# Module-level alias so the ``date`` field name does not shadow its type.
CalendarDate = date


class _Record(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Sentiment(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class ImpactLevel(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class EventSource(_Record):
    url: str
    name: str = ""
    timestamp: datetime


class Provenance(_Record):
    source_count: int = 1
    weights: Optional[dict[str, float]] = None
    similar_event_ids: Optional[list[str]] = None


class Event(_Record):
    """Canonical event record. ``id`` is the upsert key."""

    id: str
    title: str
    summary: str
    sentiment: Optional[Sentiment] = None
    impact_level: Optional[ImpactLevel] = None
    probability: Optional[float] = Field(default=None, ge=0, le=100)
    affected_sectors: list[str] = Field(default_factory=list)
    affected_symbols: list[str] = Field(default_factory=list)
    sources: list[EventSource] = Field(min_length=1)
    reasoning: str = ""
    model_used: str
    provenance: Provenance = Field(default_factory=Provenance)
    timestamp: datetime


class Stock(_Record):
    ticker: str
    name: str = ""
    price: float
    change: float = 0.0
    change_percent: float = 0.0
    fundamentals: dict[str, Any] = Field(default_factory=dict)
    technical: dict[str, Any] = Field(default_factory=dict)
    ai_summary: str = ""
    sparkline: list[float] = Field(default_factory=list)


class CalendarEvent(_Record):
    id: str
    date: CalendarDate
    country: str
    event: str
    importance: ImpactLevel = ImpactLevel.MEDIUM
    forecast: Optional[str] = None
    previous: Optional[str] = None
    ai_summary: str = ""
    affected_markets: list[str] = Field(default_factory=list)
