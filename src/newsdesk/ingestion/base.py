from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from newsdesk.core.events import RawItem
from newsdesk.core.http import call_deadline
from newsdesk.core.logger import get_logger, log_error_with_context

log = get_logger("ingestion")


class NewsSource(ABC):
    """A news adapter. ``fetch`` never raises: failures yield an empty list."""

    name: str = "source"
    timeout: float = 8.0
    max_attempts: int = 1

    @property
    def enabled(self) -> bool:
        return True

    @property
    def deadline(self) -> float:
        """Seconds allowed for one whole fetch, retries included."""
        return call_deadline(self.timeout, self.max_attempts)

    async def fetch(self) -> list[RawItem]:
        if not self.enabled:
            log.debug(f"Source '{self.name}' disabled, skipping")
            return []
        try:
            items = await asyncio.wait_for(self._fetch(), timeout=self.deadline)
        except Exception as e:
            log_error_with_context(log, "Source fetch failed", e, source=self.name)
            return []
        log.info(f"Fetched {len(items)} items from {self.name}")
        return items

    @abstractmethod
    async def _fetch(self) -> list[RawItem]:
        raise NotImplementedError
