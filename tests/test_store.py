"""Tests for SQLiteStore."""
import sqlite3
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from newsdesk.core.errors import StoreError
from newsdesk.data.models import CalendarEvent, ImpactLevel, Stock
from newsdesk.data.seed import seed_demo_data
from newsdesk.data.store import SQLiteStore


NOW = datetime(2025, 10, 25, 12, 0, tzinfo=timezone.utc)


class TestEventUpsert:
    def test_init_creates_tables(self, store: SQLiteStore):
        with store.connect() as conn:
            names = {
                r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        assert {"events", "stocks", "calendar_events"} <= names

    def test_upsert_then_read_back(self, store: SQLiteStore, event_factory):
        event = event_factory("evt-abc1234", timestamp=NOW, impact=ImpactLevel.HIGH, sectors=["Energy"])

        assert store.upsert_event(event) is True

        loaded = store.get_event("evt-abc1234")
        assert loaded is not None
        assert loaded.model_dump() == event.model_dump()

    def test_upsert_is_idempotent(self, store: SQLiteStore, event_factory):
        """Writing the same id twice leaves exactly one record."""
        event = event_factory("evt-same", timestamp=NOW)

        assert store.upsert_event(event) is True
        assert store.upsert_event(event) is True

        assert store.count_events() == 1
        with store.connect() as conn:
            n = conn.execute("SELECT COUNT(*) FROM events WHERE id = ?", ("evt-same",)).fetchone()[0]
        assert n == 1

    def test_upsert_updates_existing(self, store: SQLiteStore, event_factory):
        store.upsert_event(event_factory("evt-1", timestamp=NOW, title="Old title"))
        store.upsert_event(event_factory("evt-1", timestamp=NOW, title="New title"))

        assert store.count_events() == 1
        assert store.get_event("evt-1").title == "New title"

    def test_upsert_failure_returns_false(self, tmp_path: Path, event_factory):
        """A write error is reported, not raised."""
        broken = SQLiteStore(path=tmp_path / "no-schema.sqlite3")  # init() never called
        assert broken.upsert_event(event_factory("evt-x", timestamp=NOW)) is False

    def test_get_missing_event(self, store: SQLiteStore):
        assert store.get_event("evt-missing") is None

    def test_known_source_keys(self, store: SQLiteStore, event_factory):
        store.upsert_event(event_factory("evt-1", timestamp=NOW), source_key="https://a/1")
        store.upsert_event(event_factory("evt-2", timestamp=NOW), source_key="https://a/2")

        assert store.known_source_keys(["https://a/1", "https://a/3", ""]) == {"https://a/1"}
        assert store.known_source_keys([]) == set()


class TestEventQuery:
    @pytest.fixture
    def populated(self, store: SQLiteStore, event_factory) -> SQLiteStore:
        store.upsert_event(event_factory("evt-old-high", timestamp=NOW - timedelta(days=2), impact=ImpactLevel.HIGH, sectors=["Energy"]))
        store.upsert_event(event_factory("evt-new-high", timestamp=NOW, impact=ImpactLevel.HIGH, sectors=["Technology"]))
        store.upsert_event(event_factory("evt-mid", timestamp=NOW - timedelta(hours=1), impact=ImpactLevel.MEDIUM, sectors=["Energy", "Transportation"]))
        store.upsert_event(event_factory("evt-none", timestamp=NOW - timedelta(hours=2)))
        return store

    def test_newest_first(self, populated: SQLiteStore):
        ids = [e.id for e in populated.query_events()]
        assert ids == ["evt-new-high", "evt-mid", "evt-none", "evt-old-high"]

    def test_impact_filter(self, populated: SQLiteStore):
        events = populated.query_events(impact_level="High")
        assert [e.id for e in events] == ["evt-new-high", "evt-old-high"]
        assert all(e.impact_level == ImpactLevel.HIGH for e in events)

    def test_since_filter(self, populated: SQLiteStore):
        events = populated.query_events(since=NOW - timedelta(hours=1))
        assert [e.id for e in events] == ["evt-new-high", "evt-mid"]

    def test_sector_filter(self, populated: SQLiteStore):
        events = populated.query_events(sector="Energy")
        assert [e.id for e in events] == ["evt-mid", "evt-old-high"]

    def test_filters_are_conjunctive(self, populated: SQLiteStore):
        events = populated.query_events(impact_level=ImpactLevel.HIGH, sector="Energy")
        assert [e.id for e in events] == ["evt-old-high"]

        events = populated.query_events(impact_level=ImpactLevel.HIGH, sector="Energy", since=NOW - timedelta(days=1))
        assert events == []

    def test_limit(self, populated: SQLiteStore):
        assert len(populated.query_events(limit=2)) == 2

    def test_mixed_timezones_sort_correctly(self, store: SQLiteStore, event_factory):
        ist = timezone(timedelta(hours=5, minutes=30))
        # 12:00 IST is 06:30 UTC, earlier than 07:00 UTC
        store.upsert_event(event_factory("evt-ist", timestamp=datetime(2025, 10, 25, 12, 0, tzinfo=ist)))
        store.upsert_event(event_factory("evt-utc", timestamp=datetime(2025, 10, 25, 7, 0, tzinfo=timezone.utc)))
        assert [e.id for e in store.query_events()] == ["evt-utc", "evt-ist"]

    def test_read_failure_raises_store_error(self, tmp_path: Path):
        broken = SQLiteStore(path=tmp_path / "no-schema.sqlite3")
        with pytest.raises(StoreError):
            broken.query_events()

    def test_cleanup_old_events(self, store: SQLiteStore, event_factory):
        now = datetime.now(timezone.utc)
        store.upsert_event(event_factory("evt-ancient", timestamp=now - timedelta(days=40)))
        store.upsert_event(event_factory("evt-recent", timestamp=now - timedelta(days=1)))

        assert store.cleanup_old_events(days=30) == 1
        assert [e.id for e in store.query_events()] == ["evt-recent"]


class TestStocksAndCalendar:
    def test_stock_round_trip(self, store: SQLiteStore):
        store.upsert_stock(Stock(ticker="aapl", name="Apple Inc.", price=178.45, change_percent=1.33))

        stock = store.get_stock("AAPL")
        assert stock is not None
        assert stock.price == 178.45
        assert store.get_stock("MSFT") is None

    def test_list_stocks_sorted(self, store: SQLiteStore):
        store.upsert_stock(Stock(ticker="TSLA", price=1.0))
        store.upsert_stock(Stock(ticker="AAPL", price=2.0))
        assert [s.ticker for s in store.list_stocks()] == ["AAPL", "TSLA"]

    def test_calendar_filters(self, store: SQLiteStore):
        store.upsert_calendar_event(CalendarEvent(id="c1", date=date(2025, 10, 28), country="US", event="GDP"))
        store.upsert_calendar_event(CalendarEvent(id="c2", date=date(2025, 10, 30), country="EU", event="ECB"))
        store.upsert_calendar_event(CalendarEvent(id="c3", date=date(2025, 11, 1), country="US", event="NFP"))

        assert [c.id for c in store.query_calendar()] == ["c1", "c2", "c3"]
        assert [c.id for c in store.query_calendar(country="US")] == ["c1", "c3"]
        assert [c.id for c in store.query_calendar(start=date(2025, 10, 29), end=date(2025, 10, 31))] == ["c2"]

    def test_seed_demo_data_is_repeatable(self, store: SQLiteStore):
        first = seed_demo_data(store)
        seed_demo_data(store)

        assert first["events"] == store.count_events()
        assert len(store.list_stocks()) == first["stocks"]
        assert len(store.query_calendar()) == first["calendarEvents"]
