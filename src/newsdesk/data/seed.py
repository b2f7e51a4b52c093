"""Demo records for a fresh datastore (dashboard development)."""
from __future__ import annotations

from newsdesk.core.logger import get_logger
from newsdesk.data.models import CalendarEvent, Event, Stock
from newsdesk.data.store import SQLiteStore

log = get_logger("seed")

DEMO_EVENTS = [
    {
        "id": "evt-001",
        "title": "Fed Signals Rate Cut in Q2 2025",
        "summary": "Federal Reserve officials hint at potential interest rate reduction following cooler inflation data.",
        "sentiment": "bullish",
        "impactLevel": "High",
        "probability": 78,
        "affectedSectors": ["Technology", "Real Estate", "Financials"],
        "affectedSymbols": ["SPY", "QQQ", "IWM", "XLF"],
        "sources": [
            {"name": "Bloomberg", "url": "https://bloomberg.com", "timestamp": "2025-10-25T10:30:00Z"},
            {"name": "Reuters", "url": "https://reuters.com", "timestamp": "2025-10-25T11:00:00Z"},
        ],
        "reasoning": "Recent CPI data puts inflation near target; rate cuts have historically lifted growth sectors.",
        "modelUsed": "demo",
        "provenance": {
            "sourceCount": 2,
            "weights": {"Bloomberg": 0.5, "Reuters": 0.5},
            "similarEventIds": ["evt-historic-001"],
        },
        "timestamp": "2025-10-25T12:00:00Z",
    },
    {
        "id": "evt-002",
        "title": "Tech Earnings Beat Expectations",
        "summary": "Major tech companies report stronger-than-expected Q3 earnings, driven by AI adoption.",
        "sentiment": "bullish",
        "impactLevel": "High",
        "probability": 85,
        "affectedSectors": ["Technology", "Communication Services"],
        "affectedSymbols": ["AAPL", "MSFT", "GOOGL", "NVDA"],
        "sources": [{"name": "CNBC", "url": "https://cnbc.com", "timestamp": "2025-10-24T16:00:00Z"}],
        "reasoning": "Cloud revenue up 25% YoY; AI infrastructure spending accelerating.",
        "modelUsed": "demo",
        "provenance": {"sourceCount": 1},
        "timestamp": "2025-10-24T18:00:00Z",
    },
    {
        "id": "evt-003",
        "title": "Oil Supply Concerns Ease",
        "summary": "OPEC+ announces production increase, alleviating supply shortage fears.",
        "sentiment": "bearish",
        "impactLevel": "Medium",
        "probability": 72,
        "affectedSectors": ["Energy", "Transportation"],
        "affectedSymbols": ["XLE", "CVX", "XOM"],
        "sources": [{"name": "Reuters", "url": "https://reuters.com", "timestamp": "2025-10-23T09:00:00Z"}],
        "reasoning": "Extra supply eases tight conditions; transport benefits from lower fuel costs.",
        "modelUsed": "demo",
        "provenance": {"sourceCount": 1},
        "timestamp": "2025-10-23T10:00:00Z",
    },
]

DEMO_STOCKS = [
    {
        "ticker": "AAPL",
        "name": "Apple Inc.",
        "price": 178.45,
        "change": 2.34,
        "changePercent": 1.33,
        "fundamentals": {"pe": 29.5, "marketCap": "2.8T", "dividendYield": 0.52},
        "technical": {"ma50": 175.2, "ma200": 168.9, "rsi": 62},
        "sparkline": [172, 173, 175, 174, 176, 178, 179, 177, 178, 178.45],
    },
    {
        "ticker": "TSLA",
        "name": "Tesla, Inc.",
        "price": 242.80,
        "change": -3.15,
        "changePercent": -1.28,
        "fundamentals": {"pe": 68.2, "marketCap": "771B", "dividendYield": 0},
        "technical": {"ma50": 245.6, "ma200": 238.4, "rsi": 48},
        "sparkline": [248, 246, 245, 243, 244, 242, 243, 241, 242, 242.80],
    },
]

DEMO_CALENDAR = [
    {
        "id": "cal-001",
        "date": "2025-10-28",
        "country": "US",
        "event": "GDP Growth Rate (Q3)",
        "importance": "High",
        "forecast": "2.8%",
        "previous": "3.0%",
        "affectedMarkets": ["USD", "Bonds", "Equities"],
    },
    {
        "id": "cal-002",
        "date": "2025-10-29",
        "country": "US",
        "event": "Core PCE Price Index",
        "importance": "High",
        "forecast": "2.6%",
        "previous": "2.7%",
        "affectedMarkets": ["USD", "Bonds", "Gold"],
    },
    {
        "id": "cal-003",
        "date": "2025-10-30",
        "country": "EU",
        "event": "ECB Interest Rate Decision",
        "importance": "High",
        "forecast": "4.25%",
        "previous": "4.50%",
        "affectedMarkets": ["EUR", "European Equities", "Euro Bonds"],
    },
]


def seed_demo_data(store: SQLiteStore) -> dict[str, int]:
    """Upsert the demo events, stocks and calendar entries.

    Safe to call repeatedly; records are keyed on their ids.
    """
    events = 0
    for raw in DEMO_EVENTS:
        if store.upsert_event(Event.model_validate(raw)):
            events += 1
    for raw in DEMO_STOCKS:
        store.upsert_stock(Stock.model_validate(raw))
    for raw in DEMO_CALENDAR:
        store.upsert_calendar_event(CalendarEvent.model_validate(raw))

    counts = {"events": events, "stocks": len(DEMO_STOCKS), "calendarEvents": len(DEMO_CALENDAR)}
    log.info(f"Demo data loaded: {counts}")
    return counts
