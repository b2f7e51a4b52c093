"""FastAPI dependency injection: components live on ``app.state.services``."""
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from newsdesk.config import Settings
from newsdesk.data.store import SQLiteStore
from newsdesk.quotes.base import QuoteService
from newsdesk.scheduler import IngestionScheduler
from newsdesk.services import Services
from newsdesk.summarize.base import Summarizer


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_store(request: Request) -> SQLiteStore:
    return request.app.state.services.store


def get_app_settings(request: Request) -> Settings:
    return request.app.state.services.settings


def get_quotes(request: Request) -> QuoteService:
    return request.app.state.services.quotes


def get_summarizer(request: Request) -> Summarizer:
    return request.app.state.services.summarizer


def get_scheduler(request: Request) -> IngestionScheduler:
    return request.app.state.services.scheduler


# Type aliases for cleaner route signatures
Store = Annotated[SQLiteStore, Depends(get_store)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Quotes = Annotated[QuoteService, Depends(get_quotes)]
SummarizerDep = Annotated[Summarizer, Depends(get_summarizer)]
Scheduler = Annotated[IngestionScheduler, Depends(get_scheduler)]
