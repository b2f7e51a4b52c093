from __future__ import annotations

import httpx

from newsdesk.core import http
from newsdesk.core.events import RawItem
from newsdesk.core.timeutils import from_unix
from newsdesk.ingestion.base import NewsSource


class FinnhubNewsSource(NewsSource):
    """Finnhub market headlines (``/news?category=...``).

    Without an API key the source is disabled and returns nothing.
    """

    name = "finnhub"

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient,
        *,
        base_url: str = "https://finnhub.io/api/v1",
        category: str = "general",
        timeout: float = 8.0,
        max_attempts: int = 2,
    ):
        self.api_key = api_key
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.category = category
        self.timeout = timeout
        self.max_attempts = max_attempts

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _fetch(self) -> list[RawItem]:
        data = await http.get_json(
            self.client,
            f"{self.base_url}/news",
            params={"category": self.category, "token": self.api_key},
            timeout=self.timeout,
            max_attempts=self.max_attempts,
        )
        if not isinstance(data, list):
            return []

        origin = f"{self.base_url}/news?category={self.category}"
        items = []
        for n in data:
            if not isinstance(n, dict):
                continue
            items.append(
                RawItem(
                    title=str(n.get("headline") or "").strip(),
                    link=str(n.get("url") or "").strip(),
                    published_at=from_unix(n.get("datetime")),
                    description=str(n.get("summary") or ""),
                    source=str(n.get("source") or "Finnhub"),
                    origin=origin,
                )
            )
        return items
