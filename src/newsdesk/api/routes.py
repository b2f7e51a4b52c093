"""HTTP read/write surface for the dashboard."""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from newsdesk import __version__
from newsdesk.api.dependencies import AppSettings, Quotes, Scheduler, Store, SummarizerDep
from newsdesk.api.schemas import FetchLiveResponse, StockQuoteResponse, SummaryRequest, SummaryResponse
from newsdesk.core.logger import get_logger, log_error_with_context
from newsdesk.core.timeutils import parse_timestamp, utcnow
from newsdesk.data.models import CalendarEvent, Event, ImpactLevel, Stock
from newsdesk.data.seed import seed_demo_data
from newsdesk.scheduler import CycleInProgress

log = get_logger("api")

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "newsdesk backend is running"


@router.get("/health")
def health(settings: AppSettings, store: Store, scheduler: Scheduler, summarizer: SummarizerDep):
    breaker = getattr(summarizer, "breaker", None)
    return {
        "status": "ok",
        "version": __version__,
        "timestamp": utcnow().isoformat(),
        "events": store.count_events(),
        "scheduler": {
            "enabled": settings.scheduler_enabled,
            "intervalSeconds": settings.fetch_interval_seconds,
            **scheduler.status.to_dict(),
        },
        "summarizer": breaker.get_stats() if breaker else {"name": "truncate"},
        "features": settings.features,
        "publicBaseUrl": settings.public_base_url or None,
    }


@router.post("/api/fetch-live", response_model=FetchLiveResponse)
async def fetch_live(scheduler: Scheduler):
    """Run one ingestion cycle and report how many events were stored."""
    try:
        result = await scheduler.run_now()
    except CycleInProgress as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        log_error_with_context(log, "fetch-live failed", e)
        raise HTTPException(status_code=500, detail=str(e))
    return FetchLiveResponse(success=True, inserted=result.inserted, cycle=result.to_dict())


@router.get("/api/events", response_model=list[Event])
def list_events(
    store: Store,
    since: Optional[str] = None,
    impact: Optional[ImpactLevel] = None,
    sector: Optional[str] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
):
    since_dt = None
    if since:
        since_dt = parse_timestamp(since)
        if since_dt is None:
            raise HTTPException(status_code=400, detail=f"Invalid 'since' timestamp: {since}")
    return store.query_events(since=since_dt, impact_level=impact, sector=sector, limit=limit)


@router.get("/api/events/{event_id}", response_model=Event)
def get_event(event_id: str, store: Store):
    event = store.get_event(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.get("/api/stock/{ticker}", response_model=StockQuoteResponse)
async def stock_quote(ticker: str, quotes: Quotes):
    """Live quote from the first provider that has data."""
    found = await quotes.lookup(ticker)
    if found is None:
        raise HTTPException(status_code=404, detail="No quote available")
    source, quote = found
    return StockQuoteResponse(source=source, quote=quote.to_dict())


@router.get("/api/stocks", response_model=list[Stock])
def list_stocks(store: Store):
    return store.list_stocks()


@router.get("/api/stocks/{ticker}", response_model=Stock)
def get_stock(ticker: str, store: Store):
    stock = store.get_stock(ticker)
    if stock is None:
        raise HTTPException(status_code=404, detail="Stock not found")
    return stock


@router.get("/api/calendar", response_model=list[CalendarEvent])
def calendar(
    store: Store,
    country: Optional[str] = None,
    start: Optional[date] = Query(default=None, alias="from"),
    end: Optional[date] = Query(default=None, alias="to"),
):
    return store.query_calendar(country=country, start=start, end=end)


@router.post("/api/summary", response_model=SummaryResponse)
async def summary(summarizer: SummarizerDep, body: Optional[SummaryRequest] = None):
    if body is None or not (body.text or "").strip():
        raise HTTPException(status_code=400, detail="text required")
    result = await summarizer.summarize(body.text)
    return SummaryResponse(summary=result.summary, model=result.model)


@router.post("/api/init-demo-data")
def init_demo_data(store: Store):
    try:
        counts = seed_demo_data(store)
    except Exception as e:
        log_error_with_context(log, "Demo data initialization failed", e)
        raise HTTPException(status_code=500, detail="Failed to initialize demo data")
    return {"success": True, "message": "Demo data initialized", "data": counts}
