"""Pytest configuration and fixtures for newsdesk tests."""
from __future__ import annotations

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator, Optional

import httpx
import pytest

from newsdesk.config import Settings
from newsdesk.core.events import Quote, RawItem
from newsdesk.data.models import Event, EventSource, ImpactLevel
from newsdesk.data.store import SQLiteStore
from newsdesk.ingestion.base import NewsSource
from newsdesk.quotes.base import QuoteProvider


class StaticSource(NewsSource):
    """Source returning a fixed list of items."""

    def __init__(self, name: str, items: list[RawItem]):
        self.name = name
        self.items = items
        self.calls = 0

    async def _fetch(self) -> list[RawItem]:
        self.calls += 1
        return list(self.items)


class FailingSource(NewsSource):
    """Source whose transport always fails."""

    name = "broken"

    async def _fetch(self) -> list[RawItem]:
        raise httpx.ConnectError("connection refused")


class StaticQuoteProvider(QuoteProvider):
    def __init__(self, name: str, quote: Optional[Quote]):
        self.name = name
        self.quote = quote
        self.calls: list[str] = []

    async def _get_quote(self, ticker: str) -> Optional[Quote]:
        self.calls.append(ticker)
        return self.quote


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file."""
    with tempfile.NamedTemporaryFile(suffix=".sqlite3", delete=False) as f:
        db_path = Path(f.name)
    yield db_path
    for suffix in ("", "-wal", "-shm"):
        p = Path(f"{db_path}{suffix}")
        if p.exists():
            p.unlink()


@pytest.fixture
def store(temp_db: Path) -> SQLiteStore:
    """Create a SQLiteStore with a temporary database."""
    s = SQLiteStore(path=temp_db)
    s.init()
    return s


@pytest.fixture
def settings(temp_db: Path) -> Settings:
    """Settings with every external integration switched off."""
    return Settings(
        _env_file=None,
        store_path=str(temp_db),
        rss_feeds="",
        finnhub_api_key="",
        alphavantage_api_key="",
        huggingface_api_key="",
        scheduler_enabled=False,
        source_retries=1,
    )


@pytest.fixture
def make_client() -> Callable[..., httpx.AsyncClient]:
    """Factory for AsyncClients backed by an in-process handler."""

    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def sample_items() -> list[RawItem]:
    now = datetime.now(timezone.utc)
    return [
        RawItem(
            title="Oil prices climb on supply worries",
            link="https://example.com/oil",
            published_at=now - timedelta(minutes=5),
            description="Brent crude rose 2% as traders weighed supply risks.",
            source="Example Wire",
        ),
        RawItem(
            title="Rupee steadies after RBI comments",
            link="https://example.com/rupee",
            published_at=now - timedelta(minutes=10),
            description="The rupee held near record lows.",
            source="Example Wire",
        ),
    ]


def make_event(
    event_id: str,
    *,
    timestamp: datetime,
    impact: Optional[ImpactLevel] = None,
    sectors: Optional[list[str]] = None,
    title: str = "Test event",
) -> Event:
    return Event(
        id=event_id,
        title=title,
        summary="summary",
        impact_level=impact,
        affected_sectors=sectors or [],
        sources=[EventSource(url=f"https://example.com/{event_id}", name="test", timestamp=timestamp)],
        reasoning="Auto-summarized by none",
        model_used="none",
        timestamp=timestamp,
    )


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def static_source():
    return StaticSource


@pytest.fixture
def failing_source():
    return FailingSource()


@pytest.fixture
def static_quote_provider():
    return StaticQuoteProvider
