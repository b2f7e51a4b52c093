from __future__ import annotations

from typing import Any, Optional

import httpx

from newsdesk.core.retry import RETRY_MAX_WAIT, call_with_retry

# Some feed hosts reject the default httpx agent
USER_AGENT = "Mozilla/5.0 (compatible; newsdesk/0.1; +https://github.com/)"


def call_deadline(timeout: float, max_attempts: int) -> float:
    """Upper bound for a whole retried call: every attempt plus the backoff between them.

    httpx timeouts apply per socket operation, so a slow-dripping host can
    outlast them; callers wrap the call in ``asyncio.wait_for`` with this bound.
    """
    attempts = max(1, max_attempts)
    return timeout * attempts + RETRY_MAX_WAIT * (attempts - 1)


def make_client(timeout: float = 8.0, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Create the shared outbound HTTP client."""
    return httpx.AsyncClient(
        timeout=timeout,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )


async def get(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Optional[dict[str, Any]] = None,
    timeout: float = 8.0,
    max_attempts: int = 2,
) -> httpx.Response:
    """GET with transport-level retries; raises on non-2xx."""
    response = await call_with_retry(
        client.get,
        url,
        params=params,
        timeout=timeout,
        max_attempts=max_attempts,
    )
    response.raise_for_status()
    return response


async def get_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: Optional[dict[str, Any]] = None,
    timeout: float = 8.0,
    max_attempts: int = 2,
) -> Any:
    response = await get(client, url, params=params, timeout=timeout, max_attempts=max_attempts)
    return response.json()
