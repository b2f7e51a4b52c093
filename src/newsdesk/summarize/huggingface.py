from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from newsdesk.core.circuit_breaker import CircuitBreaker, CircuitOpenError
from newsdesk.core.errors import SummarizerError
from newsdesk.core.events import SummaryResult
from newsdesk.core.logger import get_logger, log_error_with_context
from newsdesk.summarize.base import MODEL_ERROR, Summarizer, truncate

log = get_logger("huggingface")


def extract_summary(data: Any) -> str:
    """Pull ``summary_text`` out of an inference response.

    The endpoint answers either ``[{"summary_text": ...}]`` or
    ``{"summary_text": ...}``; some deployments return a bare string.
    """
    if isinstance(data, list):
        data = data[0] if data else {}
    if isinstance(data, str):
        return data.strip()
    if isinstance(data, dict):
        if data.get("error"):
            raise SummarizerError(f"Inference error: {data['error']}")
        return str(data.get("summary_text") or "").strip()
    return ""


class HuggingFaceSummarizer(Summarizer):
    """Summaries from the Hugging Face inference API.

    Configuration:
        HUGGINGFACE_API_KEY: API token
        HUGGINGFACE_BASE_URL: Inference base URL
        SUMMARY_MODEL: Model to use (default: sshleifer/distilbart-cnn-12-6)

    Any failure (timeout, non-2xx, empty or malformed payload) degrades to the
    first ``fallback_chars`` characters with ``model="error"``. After repeated
    failures the circuit breaker opens and the network is skipped until the
    recovery timeout elapses.

    Usage:
        summarizer = HuggingFaceSummarizer(api_key="hf_...", client=client)
        result = await summarizer.summarize(text)
        print(result.model, result.summary)
    """

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient,
        *,
        model: str = "sshleifer/distilbart-cnn-12-6",
        base_url: str = "https://router.huggingface.co/hf-inference/models",
        timeout: float = 15.0,
        max_input_chars: int = 3000,
        fallback_chars: int = 300,
        breaker: Optional[CircuitBreaker] = None,
    ):
        if not api_key:
            raise ValueError("HUGGINGFACE_API_KEY is required")

        self.api_key = api_key
        self.client = client
        self.model = model
        self.url = f"{base_url.rstrip('/')}/{model}"
        self.timeout = timeout
        self.max_input_chars = max_input_chars
        self.fallback_chars = fallback_chars
        self.breaker = breaker or CircuitBreaker(name="huggingface")

    async def _request(self, text: str) -> str:
        response = await self.client.post(
            self.url,
            json={"inputs": text},
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )
        if response.status_code == 401:
            raise SummarizerError("Invalid API key")
        if response.status_code == 429:
            raise SummarizerError("Rate limit exceeded")
        response.raise_for_status()

        summary = extract_summary(response.json())
        if not summary:
            raise SummarizerError("Empty summary in response")
        return summary

    def _fallback(self, text: str) -> SummaryResult:
        return SummaryResult(summary=truncate(text, self.fallback_chars), model=MODEL_ERROR)

    async def summarize(self, text: str) -> SummaryResult:
        text = (text or "")[: self.max_input_chars]
        if not text.strip():
            return self._fallback(text)

        try:
            # Bound the whole call, not just each socket operation
            summary = await self.breaker.call(
                lambda: asyncio.wait_for(self._request(text), timeout=self.timeout)
            )
        except CircuitOpenError:
            log.debug("Summarizer circuit open, using truncation")
            return self._fallback(text)
        except Exception as e:
            log_error_with_context(
                log, "Summarization failed", e, level=logging.WARNING, source=self.model
            )
            return self._fallback(text)

        return SummaryResult(summary=summary, model=self.model)
