from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel


class SummaryRequest(BaseModel):
    text: Optional[str] = None


class SummaryResponse(BaseModel):
    summary: str
    model: str


class FetchLiveResponse(BaseModel):
    success: bool
    inserted: int
    cycle: dict[str, Any]


class StockQuoteResponse(BaseModel):
    source: str
    quote: dict[str, Any]
