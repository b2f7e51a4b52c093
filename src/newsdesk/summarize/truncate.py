from __future__ import annotations

from newsdesk.core.events import SummaryResult
from newsdesk.summarize.base import MODEL_NONE, Summarizer, truncate


class TruncatingSummarizer(Summarizer):
    """Offline fallback: the first ``limit`` characters. Never touches the network."""

    def __init__(self, limit: int = 300):
        self.limit = limit

    async def summarize(self, text: str) -> SummaryResult:
        return SummaryResult(summary=truncate(text, self.limit), model=MODEL_NONE)
