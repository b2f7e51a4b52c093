from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

from newsdesk.core.events import Quote
from newsdesk.core.http import call_deadline
from newsdesk.core.logger import get_logger, log_error_with_context

log = get_logger("quotes")


def to_float(value: Any, default: Optional[float] = None) -> Optional[float]:
    """Parse provider numbers such as ``"178.4500"`` or ``"1.3300%"``."""
    if value is None:
        return default
    try:
        return float(str(value).strip().rstrip("%"))
    except ValueError:
        return default


class QuoteProvider(ABC):
    """A quote adapter. ``get_quote`` never raises: no data means None."""

    name: str = "provider"
    timeout: float = 8.0
    max_attempts: int = 1

    @property
    def enabled(self) -> bool:
        return True

    @property
    def deadline(self) -> float:
        return call_deadline(self.timeout, self.max_attempts)

    async def get_quote(self, ticker: str) -> Optional[Quote]:
        if not self.enabled:
            return None
        try:
            return await asyncio.wait_for(self._get_quote(ticker), timeout=self.deadline)
        except Exception as e:
            log_error_with_context(log, "Quote lookup failed", e, source=self.name, ticker=ticker)
            return None

    @abstractmethod
    async def _get_quote(self, ticker: str) -> Optional[Quote]:
        raise NotImplementedError


class QuoteService:
    """Walks providers in order and returns the first quote found."""

    def __init__(self, providers: list[QuoteProvider]):
        self.providers = providers

    async def lookup(self, ticker: str) -> Optional[tuple[str, Quote]]:
        symbol = ticker.strip().upper()
        for provider in self.providers:
            quote = await provider.get_quote(symbol)
            if quote is not None:
                return provider.name, quote
            log.debug(f"No quote for {symbol} from {provider.name}")
        return None
