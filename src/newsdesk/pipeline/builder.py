from __future__ import annotations

import secrets
import string
from datetime import datetime
from typing import Callable, Optional

from newsdesk.core.events import RawItem, SummaryResult
from newsdesk.core.timeutils import utcnow
from newsdesk.data.models import Event, EventSource, Provenance

_ALPHABET = string.ascii_lowercase + string.digits


def new_event_id(length: int = 10) -> str:
    """``evt-`` plus a random base-36 suffix."""
    return "evt-" + "".join(secrets.choice(_ALPHABET) for _ in range(length))


def candidate_text(item: RawItem, max_chars: int = 3000) -> str:
    """Text handed to the summarizer: description, else title, capped."""
    text = (item.description or "").strip() or (item.title or "").strip()
    return text[:max_chars]


class EventBuilder:
    """Maps a deduplicated, summarized RawItem to an Event."""

    def __init__(
        self,
        *,
        max_input_chars: int = 3000,
        id_factory: Callable[[], str] = new_event_id,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.max_input_chars = max_input_chars
        self.id_factory = id_factory
        self.clock = clock

    def text_for(self, item: RawItem) -> str:
        return candidate_text(item, self.max_input_chars)

    def build(self, item: RawItem, summary: SummaryResult, ingested_at: Optional[datetime] = None) -> Event:
        ts = item.published_at or ingested_at or self.clock()
        return Event(
            id=self.id_factory(),
            title=item.title or item.link,
            summary=summary.summary,
            sources=[EventSource(url=item.link or item.origin, name=item.source, timestamp=ts)],
            reasoning=f"Auto-summarized by {summary.model}",
            model_used=summary.model,
            provenance=Provenance(source_count=1),
            timestamp=ts,
        )
