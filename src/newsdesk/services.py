from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from newsdesk.config import Settings
from newsdesk.core.circuit_breaker import CircuitBreaker
from newsdesk.core.http import make_client
from newsdesk.core.logger import get_logger
from newsdesk.data.store import SQLiteStore
from newsdesk.ingestion.base import NewsSource
from newsdesk.ingestion.finnhub import FinnhubNewsSource
from newsdesk.ingestion.rss import RSSSource
from newsdesk.pipeline.builder import EventBuilder
from newsdesk.pipeline.ingest import IngestionPipeline
from newsdesk.quotes.alphavantage import AlphaVantageQuoteProvider
from newsdesk.quotes.base import QuoteService
from newsdesk.quotes.finnhub import FinnhubQuoteProvider
from newsdesk.scheduler import IngestionScheduler
from newsdesk.summarize.base import Summarizer
from newsdesk.summarize.huggingface import HuggingFaceSummarizer
from newsdesk.summarize.truncate import TruncatingSummarizer

log = get_logger("services")


@dataclass
class Services:
    """Components built once from Settings and shared by the CLI and the API."""

    settings: Settings
    client: httpx.AsyncClient
    store: SQLiteStore
    summarizer: Summarizer
    quotes: QuoteService
    pipeline: IngestionPipeline
    scheduler: IngestionScheduler

    async def aclose(self) -> None:
        await self.scheduler.stop()
        await self.client.aclose()
        log.debug("Services closed")


def make_summarizer(settings: Settings, client: httpx.AsyncClient) -> Summarizer:
    """Create the summarizer based on configuration."""
    if settings.huggingface_api_key:
        log.info(f"Using HuggingFaceSummarizer ({settings.summary_model}).")
        return HuggingFaceSummarizer(
            api_key=settings.huggingface_api_key,
            client=client,
            model=settings.summary_model,
            base_url=settings.huggingface_base_url,
            timeout=settings.summary_timeout,
            max_input_chars=settings.max_input_chars,
            fallback_chars=settings.fallback_chars,
            breaker=CircuitBreaker(
                name="huggingface",
                failure_threshold=settings.summary_failure_threshold,
                recovery_timeout=settings.summary_recovery_seconds,
            ),
        )
    log.info("Using TruncatingSummarizer (no HUGGINGFACE_API_KEY).")
    return TruncatingSummarizer(limit=settings.fallback_chars)


def make_sources(settings: Settings, client: httpx.AsyncClient) -> list[NewsSource]:
    sources: list[NewsSource] = [
        RSSSource(
            url,
            client,
            timeout=settings.source_timeout,
            max_attempts=settings.source_retries,
        )
        for url in settings.rss_feeds_list
    ]
    sources.append(
        FinnhubNewsSource(
            settings.finnhub_api_key,
            client,
            base_url=settings.finnhub_base_url,
            category=settings.news_category,
            timeout=settings.source_timeout,
            max_attempts=settings.source_retries,
        )
    )
    return sources


def make_quote_service(settings: Settings, client: httpx.AsyncClient) -> QuoteService:
    # Order is the fallback chain
    return QuoteService(
        [
            AlphaVantageQuoteProvider(
                settings.alphavantage_api_key,
                client,
                base_url=settings.alphavantage_base_url,
                timeout=settings.source_timeout,
                max_attempts=settings.source_retries,
            ),
            FinnhubQuoteProvider(
                settings.finnhub_api_key,
                client,
                base_url=settings.finnhub_base_url,
                timeout=settings.source_timeout,
                max_attempts=settings.source_retries,
            ),
        ]
    )


def build_services(
    settings: Settings,
    *,
    client: Optional[httpx.AsyncClient] = None,
    store: Optional[SQLiteStore] = None,
) -> Services:
    """Wire every component from one Settings instance."""
    client = client or make_client(timeout=settings.source_timeout)

    if store is None:
        store = SQLiteStore(path=Path(settings.store_path))
    store.init()

    summarizer = make_summarizer(settings, client)
    pipeline = IngestionPipeline(
        make_sources(settings, client),
        summarizer,
        store,
        EventBuilder(max_input_chars=settings.max_input_chars),
        max_items=settings.max_items_per_cycle,
        skip_stored=settings.skip_stored_items,
        retention_days=settings.retention_days,
    )
    scheduler = IngestionScheduler(
        pipeline.run_cycle,
        interval=settings.fetch_interval_seconds,
        run_on_start=settings.run_on_startup,
    )
    return Services(
        settings=settings,
        client=client,
        store=store,
        summarizer=summarizer,
        quotes=make_quote_service(settings, client),
        pipeline=pipeline,
        scheduler=scheduler,
    )
