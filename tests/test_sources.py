"""Tests for the RSS and Finnhub news adapters."""
import asyncio
from datetime import datetime, timezone

import time

import httpx

from newsdesk.core.http import call_deadline
from newsdesk.ingestion.finnhub import FinnhubNewsSource
from newsdesk.ingestion.rss import RSSSource, parse_feed

FEED_URL = "https://news.example.com/rss"

TWO_ITEMS = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel><title>Example</title>
  <item>
    <title>Oil jumps 3%</title>
    <link>https://example.com/oil</link>
    <pubDate>Sat, 25 Oct 2025 10:30:00 GMT</pubDate>
    <description>&lt;a href="x"&gt;Brent&lt;/a&gt; rose   sharply.</description>
    <source url="https://reuters.com">Reuters</source>
  </item>
  <item>
    <title>Rupee steady</title>
    <link>https://example.com/rupee</link>
  </item>
</channel></rss>"""

ONE_ITEM = b"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>Solo</title>
  <item><title>Only story</title><link>https://example.com/only</link></item>
</channel></rss>"""

NO_ITEMS = b"""<?xml version="1.0"?><rss version="2.0"><channel><title>Empty</title></channel></rss>"""


class TestParseFeed:
    def test_items_mapped(self):
        items = parse_feed(TWO_ITEMS, default_source="news.example.com")

        assert [i.title for i in items] == ["Oil jumps 3%", "Rupee steady"]
        first = items[0]
        assert first.link == "https://example.com/oil"
        assert first.published_at == datetime(2025, 10, 25, 10, 30, tzinfo=timezone.utc)
        assert first.description == "Brent rose sharply."
        assert first.source == "Reuters"

    def test_missing_fields_default(self):
        second = parse_feed(TWO_ITEMS, default_source="news.example.com")[1]
        assert second.published_at is None
        assert second.description == ""
        assert second.source == "news.example.com"

    def test_single_item_is_a_list(self):
        items = parse_feed(ONE_ITEM)
        assert len(items) == 1
        assert items[0].title == "Only story"

    def test_no_items_is_empty(self):
        assert parse_feed(NO_ITEMS) == []


class TestRSSSource:
    def test_fetch(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == FEED_URL
            return httpx.Response(200, content=TWO_ITEMS, headers={"Content-Type": "application/rss+xml"})

        source = RSSSource(FEED_URL, make_client(handler), max_attempts=1)
        items = asyncio.run(source.fetch())

        assert source.name == "news.example.com"
        assert len(items) == 2
        assert all(i.origin == FEED_URL for i in items)

    def test_http_error_returns_empty(self, make_client):
        source = RSSSource(FEED_URL, make_client(lambda r: httpx.Response(500)), max_attempts=1)
        assert asyncio.run(source.fetch()) == []

    def test_transport_error_returns_empty(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        source = RSSSource(FEED_URL, make_client(handler), max_attempts=1)
        assert asyncio.run(source.fetch()) == []

    def test_garbage_returns_empty(self, make_client):
        source = RSSSource(FEED_URL, make_client(lambda r: httpx.Response(200, content=b"\x00not xml<<<")), max_attempts=1)
        assert asyncio.run(source.fetch()) == []

    def test_retries_transport_errors(self, make_client):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ReadTimeout("slow", request=request)
            return httpx.Response(200, content=ONE_ITEM)

        source = RSSSource(FEED_URL, make_client(handler), max_attempts=2)
        items = asyncio.run(source.fetch())

        assert len(calls) == 2
        assert len(items) == 1

    def test_slow_host_bounded_by_deadline(self, make_client):
        async def handler(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(3600)
            return httpx.Response(200, content=ONE_ITEM)

        source = RSSSource(FEED_URL, make_client(handler), timeout=0.05, max_attempts=1)

        start = time.monotonic()
        assert asyncio.run(source.fetch()) == []
        assert time.monotonic() - start < 2.0

    def test_deadline_covers_retries(self):
        assert call_deadline(8.0, 1) == 8.0
        assert call_deadline(8.0, 2) == 21.0
        assert RSSSource(FEED_URL, None, timeout=8.0, max_attempts=2).deadline == 21.0


class TestFinnhubNewsSource:
    def test_disabled_without_key(self, make_client):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=[])

        source = FinnhubNewsSource("", make_client(handler))
        assert asyncio.run(source.fetch()) == []
        assert calls == []

    def test_maps_provider_schema(self, make_client):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/v1/news"
            assert request.url.params["category"] == "general"
            assert request.url.params["token"] == "fh-key"
            return httpx.Response(
                200,
                json=[
                    {
                        "headline": "Fed holds rates",
                        "url": "https://example.com/fed",
                        "datetime": 1761388200,
                        "summary": "The Fed left rates unchanged.",
                        "source": "Reuters",
                    },
                    {"headline": "No timestamp", "url": "https://example.com/x", "datetime": 0},
                ],
            )

        items = asyncio.run(FinnhubNewsSource("fh-key", make_client(handler), max_attempts=1).fetch())

        assert len(items) == 2
        assert items[0].title == "Fed holds rates"
        assert items[0].link == "https://example.com/fed"
        assert items[0].published_at == datetime.fromtimestamp(1761388200, tz=timezone.utc)
        assert items[0].description == "The Fed left rates unchanged."
        assert items[0].source == "Reuters"
        assert items[1].published_at is None
        assert items[1].source == "Finnhub"
        assert items[0].origin == "https://finnhub.io/api/v1/news?category=general"

    def test_non_list_payload_is_empty(self, make_client):
        source = FinnhubNewsSource("fh-key", make_client(lambda r: httpx.Response(200, json={"error": "bad"})), max_attempts=1)
        assert asyncio.run(source.fetch()) == []

    def test_auth_error_returns_empty(self, make_client):
        source = FinnhubNewsSource("fh-key", make_client(lambda r: httpx.Response(401)), max_attempts=1)
        assert asyncio.run(source.fetch()) == []
