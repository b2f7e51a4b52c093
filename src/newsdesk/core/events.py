from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

@dataclass(frozen=True)
class RawItem:
    """A news item as returned by a source adapter, before dedup and summary."""
    title: str
    link: str
    published_at: Optional[datetime] = None
    description: str = ""
    source: str = ""  # Human-readable source name (feed host, provider)
    origin: str = ""  # URL of the feed or endpoint the item came from

@dataclass(frozen=True)
class SummaryResult:
    summary: str
    model: str  # "none", "error" or the model identifier

@dataclass(frozen=True)
class Quote:
    price: float
    change: float = 0.0
    change_percent: Optional[float] = None

    def to_dict(self) -> dict:
        return {"price": self.price, "change": self.change, "changePercent": self.change_percent}
