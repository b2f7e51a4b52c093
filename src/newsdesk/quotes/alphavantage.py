from __future__ import annotations

from typing import Optional

import httpx

from newsdesk.core import http
from newsdesk.core.events import Quote
from newsdesk.quotes.base import QuoteProvider, log, to_float


class AlphaVantageQuoteProvider(QuoteProvider):
    """Alpha Vantage ``GLOBAL_QUOTE`` lookups."""

    name = "alphavantage"

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://www.alphavantage.co/query",
        timeout: float = 8.0,
        max_attempts: int = 2,
    ):
        self.api_key = api_key
        self.client = client
        self.base_url = base_url
        self.timeout = timeout
        self.max_attempts = max_attempts

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _get_quote(self, ticker: str) -> Optional[Quote]:
        data = await http.get_json(
            self.client,
            self.base_url,
            params={"function": "GLOBAL_QUOTE", "symbol": ticker, "apikey": self.api_key},
            timeout=self.timeout,
            max_attempts=self.max_attempts,
        )
        if not isinstance(data, dict):
            return None

        # Throttled responses come back 200 with a Note/Information message
        notice = data.get("Note") or data.get("Information")
        if notice:
            log.warning(f"Alpha Vantage notice for {ticker}: {str(notice)[:120]}")
            return None

        gq = data.get("Global Quote") or {}
        price = to_float(gq.get("05. price"))
        if price is None:
            return None
        return Quote(
            price=price,
            change=to_float(gq.get("09. change"), 0.0),
            change_percent=to_float(gq.get("10. change percent")),
        )
