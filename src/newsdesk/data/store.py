from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Iterable, Optional

from newsdesk.core.errors import StoreError
from newsdesk.core.logger import get_logger, log_error_with_context
from newsdesk.core.timeutils import as_utc, utcnow
from newsdesk.data.models import CalendarEvent, Event, ImpactLevel, Stock

log = get_logger("store")

_EVENT_COLUMNS = (
    "id",
    "source_key",
    "title",
    "summary",
    "sentiment",
    "impact_level",
    "probability",
    "affected_sectors",
    "affected_symbols",
    "sources",
    "reasoning",
    "model_used",
    "provenance",
    "timestamp",
)


def db_timestamp(dt: datetime) -> str:
    """Fixed-width UTC text so lexical order matches time order."""
    return as_utc(dt).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


@dataclass
class SQLiteStore:
    """SQLite storage for events, stock snapshots and the macro calendar.

    Features:
    - Events keyed on ``id``; writes are upserts, never duplicate inserts
    - ``source_key`` (the item's dedup key) lets ingestion skip known stories
    - Filtered, newest-first event queries
    - Stock and calendar snapshots stored as JSON documents

    Writes never raise: ``upsert_event`` logs and returns False so a batch can
    continue. Reads raise StoreError, which the HTTP layer turns into a 500.

    Usage:
        store = SQLiteStore(path=Path("newsdesk.sqlite3"))
        store.init()

        if store.upsert_event(event):
            print("stored", event.id)

        events = store.query_events(impact_level="High")
    """

    path: Path = Path("newsdesk.sqlite3")

    def connect(self) -> sqlite3.Connection:
        """Create a database connection."""
        conn = sqlite3.connect(self.path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        return conn

    def init(self) -> None:
        """Initialize database schema."""
        with self.connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS events (
                    id TEXT PRIMARY KEY,
                    source_key TEXT,
                    title TEXT NOT NULL,
                    summary TEXT NOT NULL,
                    sentiment TEXT,
                    impact_level TEXT,
                    probability REAL,
                    affected_sectors TEXT NOT NULL DEFAULT '[]',
                    affected_symbols TEXT NOT NULL DEFAULT '[]',
                    sources TEXT NOT NULL,
                    reasoning TEXT,
                    model_used TEXT NOT NULL,
                    provenance TEXT,
                    timestamp TEXT NOT NULL,
                    ingested_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_events_timestamp ON events(timestamp);")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_events_source_key ON events(source_key);")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_events_impact ON events(impact_level);")

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS stocks (
                    ticker TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );
                """
            )

            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS calendar_events (
                    id TEXT PRIMARY KEY,
                    date TEXT NOT NULL,
                    country TEXT NOT NULL,
                    data TEXT NOT NULL
                );
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_calendar_date ON calendar_events(date);")

            log.debug("Database schema initialized")

    # ----- events -----

    def _event_row(self, event: Event, source_key: Optional[str]) -> tuple:
        data = event.model_dump(mode="json", by_alias=True)
        return (
            event.id,
            source_key,
            event.title,
            event.summary,
            event.sentiment.value if event.sentiment else None,
            event.impact_level.value if event.impact_level else None,
            event.probability,
            json.dumps(event.affected_sectors),
            json.dumps(event.affected_symbols),
            json.dumps(data["sources"]),
            event.reasoning,
            event.model_used,
            json.dumps(data["provenance"]),
            db_timestamp(event.timestamp),
        )

    def upsert_event(self, event: Event, source_key: Optional[str] = None) -> bool:
        """Insert or update an event by ``id``.

        Returns:
            True if stored, False on a write error (already logged)
        """
        placeholders = ", ".join("?" for _ in _EVENT_COLUMNS)
        updates = ", ".join(f"{c} = excluded.{c}" for c in _EVENT_COLUMNS if c != "id")
        sql = (
            f"INSERT INTO events({', '.join(_EVENT_COLUMNS)}) VALUES({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}"
        )
        try:
            with self.connect() as conn:
                conn.execute(sql, self._event_row(event, source_key))
            return True
        except sqlite3.Error as e:
            log_error_with_context(log, "Event upsert failed", e, event_id=event.id)
            return False

    def _row_to_event(self, row: sqlite3.Row) -> Event:
        return Event.model_validate(
            {
                "id": row["id"],
                "title": row["title"],
                "summary": row["summary"],
                "sentiment": row["sentiment"],
                "impact_level": row["impact_level"],
                "probability": row["probability"],
                "affected_sectors": json.loads(row["affected_sectors"] or "[]"),
                "affected_symbols": json.loads(row["affected_symbols"] or "[]"),
                "sources": json.loads(row["sources"]),
                "reasoning": row["reasoning"] or "",
                "model_used": row["model_used"],
                "provenance": json.loads(row["provenance"] or "{}"),
                "timestamp": row["timestamp"],
            }
        )

    def query_events(
        self,
        *,
        since: Optional[datetime] = None,
        impact_level: Optional[ImpactLevel | str] = None,
        sector: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Event]:
        """Events matching all given filters, newest first.

        Raises:
            StoreError: If the datastore cannot be read
        """
        clauses: list[str] = []
        params: list[Any] = []
        if since is not None:
            clauses.append("timestamp >= ?")
            params.append(db_timestamp(since))
        if impact_level is not None:
            clauses.append("impact_level = ?")
            params.append(ImpactLevel(impact_level).value)
        if sector:
            clauses.append("EXISTS (SELECT 1 FROM json_each(events.affected_sectors) WHERE value = ?)")
            params.append(sector)

        sql = "SELECT * FROM events"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY timestamp DESC, ingested_at DESC"
        if limit:
            sql += " LIMIT ?"
            params.append(int(limit))

        try:
            with self.connect() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Event query failed: {e}") from e
        return [self._row_to_event(r) for r in rows]

    def get_event(self, event_id: str) -> Optional[Event]:
        try:
            with self.connect() as conn:
                row = conn.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Event lookup failed: {e}") from e
        return self._row_to_event(row) if row else None

    def known_source_keys(self, keys: Iterable[str]) -> set[str]:
        """Subset of ``keys`` already stored as an event's source key."""
        wanted = list({k for k in keys if k})
        if not wanted:
            return set()
        found: set[str] = set()
        try:
            with self.connect() as conn:
                # Stay under SQLite's bound-parameter limit
                for i in range(0, len(wanted), 500):
                    chunk = wanted[i : i + 500]
                    marks = ", ".join("?" for _ in chunk)
                    cur = conn.execute(
                        f"SELECT source_key FROM events WHERE source_key IN ({marks})", chunk
                    )
                    found.update(r[0] for r in cur.fetchall())
        except sqlite3.Error as e:
            raise StoreError(f"Source key lookup failed: {e}") from e
        return found

    def count_events(self) -> int:
        try:
            with self.connect() as conn:
                return int(conn.execute("SELECT COUNT(*) FROM events").fetchone()[0])
        except sqlite3.Error as e:
            raise StoreError(f"Event count failed: {e}") from e

    def cleanup_old_events(self, days: int) -> int:
        """Delete events whose timestamp is older than ``days`` days.

        Returns:
            Number of deleted events (0 on error)
        """
        cutoff = db_timestamp(utcnow() - timedelta(days=days))
        try:
            with self.connect() as conn:
                cur = conn.execute("DELETE FROM events WHERE timestamp < ?", (cutoff,))
                return cur.rowcount
        except sqlite3.Error as e:
            log_error_with_context(log, "Event cleanup failed", e)
            return 0

    # ----- stocks -----

    def upsert_stock(self, stock: Stock) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO stocks(ticker, data, updated_at) VALUES(?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(ticker) DO UPDATE SET data = excluded.data, updated_at = CURRENT_TIMESTAMP
                """,
                (stock.ticker.upper(), stock.model_dump_json()),
            )

    def get_stock(self, ticker: str) -> Optional[Stock]:
        try:
            with self.connect() as conn:
                row = conn.execute(
                    "SELECT data FROM stocks WHERE ticker = ?", (ticker.upper(),)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Stock lookup failed: {e}") from e
        return Stock.model_validate_json(row["data"]) if row else None

    def list_stocks(self) -> list[Stock]:
        try:
            with self.connect() as conn:
                rows = conn.execute("SELECT data FROM stocks ORDER BY ticker").fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Stock listing failed: {e}") from e
        return [Stock.model_validate_json(r["data"]) for r in rows]

    # ----- calendar -----

    def upsert_calendar_event(self, item: CalendarEvent) -> None:
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO calendar_events(id, date, country, data) VALUES(?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    date = excluded.date, country = excluded.country, data = excluded.data
                """,
                (item.id, item.date.isoformat(), item.country, item.model_dump_json()),
            )

    def query_calendar(
        self,
        *,
        country: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[CalendarEvent]:
        """Calendar entries matching all given filters, by date ascending."""
        clauses: list[str] = []
        params: list[Any] = []
        if country:
            clauses.append("country = ?")
            params.append(country)
        if start is not None:
            clauses.append("date >= ?")
            params.append(start.isoformat())
        if end is not None:
            clauses.append("date <= ?")
            params.append(end.isoformat())

        sql = "SELECT data FROM calendar_events"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY date ASC, id ASC"

        try:
            with self.connect() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Calendar query failed: {e}") from e
        return [CalendarEvent.model_validate_json(r["data"]) for r in rows]
