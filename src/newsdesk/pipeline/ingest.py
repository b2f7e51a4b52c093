from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from newsdesk.core.errors import StoreError
from newsdesk.core.events import RawItem
from newsdesk.core.logger import get_logger, log_error_with_context, set_correlation_id
from newsdesk.core.timeutils import iso, utcnow
from newsdesk.data.models import Event
from newsdesk.data.store import SQLiteStore
from newsdesk.ingestion.base import NewsSource
from newsdesk.pipeline.builder import EventBuilder
from newsdesk.pipeline.merge import dedup_key, merge
from newsdesk.summarize.base import Summarizer

log = get_logger("pipeline")


@dataclass
class CycleResult:
    """Counts for one ingestion cycle."""

    started_at: datetime
    fetched: int = 0
    unique: int = 0
    already_stored: int = 0
    processed: int = 0
    inserted: int = 0
    failed: int = 0
    duration_seconds: float = 0.0
    events: list[Event] = field(default_factory=list, repr=False)

    def to_dict(self) -> dict:
        return {
            "startedAt": iso(self.started_at),
            "fetched": self.fetched,
            "unique": self.unique,
            "alreadyStored": self.already_stored,
            "processed": self.processed,
            "inserted": self.inserted,
            "failed": self.failed,
            "durationSeconds": round(self.duration_seconds, 3),
        }


class IngestionPipeline:
    """fetch -> merge -> summarize -> build -> persist.

    Sources are fetched concurrently; items are then summarized and stored one
    at a time. No step raises: failed sources contribute nothing, failed
    summaries fall back to truncation and failed writes are counted.
    """

    def __init__(
        self,
        sources: Sequence[NewsSource],
        summarizer: Summarizer,
        store: SQLiteStore,
        builder: Optional[EventBuilder] = None,
        *,
        max_items: int = 40,
        skip_stored: bool = True,
        retention_days: int = 0,
    ):
        self.sources = list(sources)
        self.summarizer = summarizer
        self.store = store
        self.builder = builder or EventBuilder()
        self.max_items = max_items
        self.skip_stored = skip_stored
        self.retention_days = retention_days

    async def fetch_all(self) -> list[list[RawItem]]:
        """Fan out to every source and wait for all of them to settle."""
        results = await asyncio.gather(
            *(source.fetch() for source in self.sources),
            return_exceptions=True,
        )
        batches: list[list[RawItem]] = []
        for source, result in zip(self.sources, results):
            if isinstance(result, BaseException):
                log_error_with_context(log, "Source raised", result, source=source.name)
                batches.append([])
            else:
                batches.append(result)
        return batches

    async def _drop_stored(self, items: list[RawItem]) -> list[RawItem]:
        try:
            known = await asyncio.to_thread(
                self.store.known_source_keys, [dedup_key(i) for i in items]
            )
        except StoreError as e:
            log_error_with_context(log, "Could not check stored items", e)
            return items
        return [i for i in items if dedup_key(i) not in known]

    async def process_item(self, item: RawItem, ingested_at: datetime) -> tuple[Event, bool]:
        text = self.builder.text_for(item)
        summary = await self.summarizer.summarize(text or item.title)
        event = self.builder.build(item, summary, ingested_at=ingested_at)
        stored = await asyncio.to_thread(self.store.upsert_event, event, dedup_key(item))
        return event, stored

    async def run_cycle(self) -> CycleResult:
        """Run one full ingestion cycle."""
        cid = set_correlation_id()
        started = time.monotonic()
        result = CycleResult(started_at=utcnow())
        log.info(f"Ingestion cycle {cid} started ({len(self.sources)} sources)")

        batches = await self.fetch_all()
        result.fetched = sum(len(b) for b in batches)

        items = merge(*batches)
        result.unique = len(items)

        if self.skip_stored and items:
            fresh = await self._drop_stored(items)
            result.already_stored = len(items) - len(fresh)
            items = fresh

        selected = items[: self.max_items]
        if len(items) > len(selected):
            log.info(f"Cycle cap reached: processing {len(selected)} of {len(items)} items")

        for item in selected:
            event, stored = await self.process_item(item, result.started_at)
            result.processed += 1
            if stored:
                result.inserted += 1
                result.events.append(event)
                log.info(f"Inserted: {event.title}", extra={"event_id": event.id})
            else:
                result.failed += 1

        if self.retention_days > 0:
            deleted = await asyncio.to_thread(self.store.cleanup_old_events, self.retention_days)
            if deleted:
                log.info(f"Cleaned up {deleted} events older than {self.retention_days} days")

        result.duration_seconds = time.monotonic() - started
        log.info(
            f"Ingestion cycle {cid} done: fetched={result.fetched} unique={result.unique} "
            f"stored_before={result.already_stored} inserted={result.inserted} failed={result.failed} "
            f"in {result.duration_seconds:.1f}s"
        )
        return result
