from __future__ import annotations

from abc import ABC, abstractmethod

from newsdesk.core.events import SummaryResult

MODEL_NONE = "none"  # No summarization service configured
MODEL_ERROR = "error"  # Service call failed, truncation used


def truncate(text: str, limit: int = 300) -> str:
    return (text or "")[:limit]


class Summarizer(ABC):
    """Produces a short summary. ``summarize`` never raises."""

    @abstractmethod
    async def summarize(self, text: str) -> SummaryResult:
        raise NotImplementedError
