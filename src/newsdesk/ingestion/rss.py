from __future__ import annotations

import html
import re
from typing import Any, Optional
from urllib.parse import urlparse

import feedparser
import httpx

from newsdesk.core import http
from newsdesk.core.errors import SourceError
from newsdesk.core.events import RawItem
from newsdesk.core.timeutils import from_struct_time, parse_timestamp
from newsdesk.ingestion.base import NewsSource

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")


def _clean_text(value: Any) -> str:
    """Strip markup and collapse whitespace in feed text fields."""
    if not value:
        return ""
    text = html.unescape(_TAG_RE.sub(" ", str(value)))
    return _SPACE_RE.sub(" ", text).strip()


def _entry_source(entry, default: str) -> str:
    # Aggregators such as Google News name the publisher per item
    source = entry.get("source")
    if isinstance(source, dict) and source.get("title"):
        return str(source["title"])
    return default


def parse_feed(content: bytes | str, default_source: str = "", origin: str = "") -> list[RawItem]:
    """Parse an RSS/Atom document into RawItems.

    A document without items yields an empty list; a feed with a single item
    yields a one-element list.
    """
    parsed = feedparser.parse(content)
    if parsed.bozo and not parsed.entries:
        raise SourceError(f"Unparseable feed: {parsed.get('bozo_exception')}")

    items: list[RawItem] = []
    for entry in parsed.entries:
        description = (
            entry.get("summary")
            or entry.get("description")
            or entry.get("media_description")
            or ""
        )
        published = from_struct_time(
            entry.get("published_parsed") or entry.get("updated_parsed")
        ) or parse_timestamp(entry.get("published") or entry.get("updated"))
        items.append(
            RawItem(
                title=_clean_text(entry.get("title")),
                link=str(entry.get("link") or "").strip(),
                published_at=published,
                description=_clean_text(description),
                source=_entry_source(entry, default_source),
                origin=origin,
            )
        )
    return items


class RSSSource(NewsSource):
    """Fetches one RSS feed over HTTP and parses it with feedparser."""

    def __init__(
        self,
        url: str,
        client: httpx.AsyncClient,
        *,
        name: Optional[str] = None,
        timeout: float = 8.0,
        max_attempts: int = 2,
    ):
        self.url = url
        self.client = client
        self.name = name or urlparse(url).netloc or url
        self.timeout = timeout
        self.max_attempts = max_attempts

    async def _fetch(self) -> list[RawItem]:
        response = await http.get(
            self.client,
            self.url,
            timeout=self.timeout,
            max_attempts=self.max_attempts,
        )
        return parse_feed(response.content, default_source=self.name, origin=self.url)
