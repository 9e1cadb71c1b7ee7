"""Page fetcher with status-aware retry handling."""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional

import httpx
from selectolax.parser import HTMLParser

from creator_crawler.config import settings
from creator_crawler import metrics

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """Base class for fetch failures."""

    def __init__(self, url: str, message: str):
        super().__init__(message)
        self.url = url


class PageNotFoundError(FetchError):
    """Raised when a page does not exist or cannot be served (terminal)."""


class RateLimitedError(FetchError):
    """Raised when the source answers with HTTP 429."""


class TransientFetchError(FetchError):
    """Raised when no response was received (timeout, connection error)."""


class FailureKind(enum.Enum):
    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"
    TERMINAL = "terminal"


def classify_failure(exc: Exception) -> FailureKind:
    """
    Classify a failed attempt.

    Request errors where no usable response was received (timeouts,
    connection errors) are retried after a long pause. HTTP 429 is retried
    after a short pause. Every other HTTP error response is terminal, and so
    are redirect loops and undecodable bodies, where a response did arrive.

    Raises:
        The exception itself when it is not an HTTP failure at all
    """
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code == 429:
            return FailureKind.RATE_LIMITED
        return FailureKind.TERMINAL
    if isinstance(exc, (httpx.TooManyRedirects, httpx.DecodingError)):
        return FailureKind.TERMINAL
    if isinstance(exc, httpx.RequestError):
        return FailureKind.TRANSIENT
    raise exc


@dataclass(frozen=True)
class RetryPolicy:
    """How long to wait between attempts and when to give up."""

    transient_backoff: float = 10.0
    rate_limit_backoff: float = 2.0
    max_attempts: Optional[int] = None  # None = retry until a response arrives
    classify: Callable[[Exception], FailureKind] = field(default=classify_failure)

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        return cls(
            transient_backoff=settings.transient_backoff_seconds,
            rate_limit_backoff=settings.rate_limit_backoff_seconds,
            max_attempts=settings.max_fetch_attempts,
        )

    def backoff_for(self, kind: FailureKind) -> float:
        if kind is FailureKind.RATE_LIMITED:
            return self.rate_limit_backoff
        return self.transient_backoff

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts is not None and attempt >= self.max_attempts


def _failed_url(exc: httpx.HTTPError, fallback: str) -> str:
    try:
        return str(exc.request.url)
    except RuntimeError:
        # .request is unset on errors raised outside a client call
        return fallback


def default_headers() -> dict[str, str]:
    """Get default browser-like headers."""
    return {
        "User-Agent": settings.user_agent,
        "Accept": "text/html, application/xhtml+xml, application/xml; q=0.9, */*; q=0.8",
        "Accept-Language": "pl-PL, pl; q=0.9, en; q=0.8",
    }


class PageFetcher:
    """
    Fetches listing pages and parses them into selectolax documents.

    The fetcher never reports transient failures or rate limiting to the
    caller: it waits and retries according to the policy. The only outcome
    besides a parsed document is PageNotFoundError, which callers treat as
    "no more data".
    """

    def __init__(
        self,
        base_url: str | None = None,
        policy: RetryPolicy | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.policy = policy or RetryPolicy.from_settings()
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=base_url or settings.base_url,
            headers=default_headers(),
            follow_redirects=True,
        )
        self._sleep = sleep

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    def url_for(self, path: str, params: Optional[dict] = None) -> str:
        """Absolute URL that fetch(path, params) requests."""
        return str(self.client.build_request("GET", path, params=params).url)

    async def _attempt(self, path: str, params: Optional[dict]) -> httpx.Response:
        start = time.perf_counter()
        try:
            response = await self.client.get(path, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response
        finally:
            metrics.page_fetch_duration_seconds.observe(time.perf_counter() - start)

    async def fetch(self, path: str, params: Optional[dict] = None) -> HTMLParser:
        """
        Fetch one page.

        Args:
            path: Path relative to the base URL
            params: Optional query parameters

        Returns:
            Parsed document

        Raises:
            PageNotFoundError: The page is gone, the source answered with an
                error other than 429, or the policy ran out of attempts
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                response = await self._attempt(path, params)
            except httpx.HTTPError as e:
                kind = self.policy.classify(e)
                url = _failed_url(e, path)

                if kind is FailureKind.TERMINAL:
                    metrics.page_fetches_total.labels(outcome="not_found").inc()
                    raise PageNotFoundError(url, f"{type(e).__name__} for {url}: {e}") from e

                if self.policy.exhausted(attempt):
                    logger.warning(f"Giving up on {url} after {attempt} attempts ({kind.value})")
                    metrics.page_fetches_total.labels(outcome="exhausted").inc()
                    raise PageNotFoundError(url, f"{kind.value} failure after {attempt} attempts") from e

                sleep_s = self.policy.backoff_for(kind)
                logger.warning(
                    f"{kind.value} failure for {url} ({type(e).__name__}), "
                    f"retrying in {sleep_s:.1f}s (attempt {attempt})"
                )
                metrics.page_fetch_retries_total.labels(kind=kind.value).inc()
                await self._sleep(sleep_s)
                continue

            metrics.page_fetches_total.labels(outcome="ok").inc()
            return HTMLParser(response.text)
