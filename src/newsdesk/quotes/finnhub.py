from __future__ import annotations

from typing import Optional

import httpx

from newsdesk.core import http
from newsdesk.core.events import Quote
from newsdesk.quotes.base import QuoteProvider, to_float


class FinnhubQuoteProvider(QuoteProvider):
    """Finnhub ``/quote`` lookups.

    Finnhub answers unknown symbols with an all-zero quote, which is treated
    as no data.
    """

    name = "finnhub"

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://finnhub.io/api/v1",
        timeout: float = 8.0,
        max_attempts: int = 2,
    ):
        self.api_key = api_key
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _get_quote(self, ticker: str) -> Optional[Quote]:
        data = await http.get_json(
            self.client,
            f"{self.base_url}/quote",
            params={"symbol": ticker, "token": self.api_key},
            timeout=self.timeout,
            max_attempts=self.max_attempts,
        )
        if not isinstance(data, dict):
            return None

        price = to_float(data.get("c"))
        if not price:
            return None
        return Quote(
            price=price,
            change=to_float(data.get("d"), 0.0) or 0.0,
            change_percent=to_float(data.get("dp")),
        )
