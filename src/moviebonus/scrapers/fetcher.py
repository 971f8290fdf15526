"""Resilient page fetcher with deadline, retry and batched concurrency."""

import asyncio
import logging
from dataclasses import dataclass, field

import httpx

from moviebonus.config import settings
from moviebonus.scrapers.models import FetchResult, utcnow
from moviebonus.scrapers.pacing import SleepFunc

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)

_BASE_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "zh-TW,zh;q=0.9,en;q=0.8",
}


@dataclass
class FetchOptions:
    """Per-request fetch options. Defaults come from settings."""

    timeout: float = field(default_factory=lambda: float(settings.scrape_timeout))
    user_agent: str = DEFAULT_USER_AGENT
    headers: dict[str, str] = field(default_factory=dict)
    retries: int = field(default_factory=lambda: settings.scrape_max_retries)
    retry_delay: float = field(default_factory=lambda: settings.scrape_retry_delay)


class PageFetcher:
    """
    HTTP GET with a per-attempt deadline and linear-backoff retries.

    Only transport-level failures (timeouts, DNS, connection resets, any
    raised error) are retried. A completed HTTP exchange is returned as-is,
    including 4xx/5xx, since blocked pages do not unblock on retry.

    Never raises: every failure is described by the returned FetchResult.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """
        Args:
            client: Shared client to send requests through. When omitted a
                short-lived client is opened per request.
            sleep: Awaitable sleep used for retry backoff and batch delays
        """
        self._client = client
        self._sleep = sleep

    async def fetch(self, url: str, options: FetchOptions | None = None) -> FetchResult:
        """Fetch a URL and return its HTML content."""
        opts = options or FetchOptions()
        headers = {"User-Agent": opts.user_agent, **_BASE_HEADERS, **opts.headers}
        last_error = ""

        for attempt in range(opts.retries + 1):
            try:
                response = await asyncio.wait_for(
                    self._get(url, headers, opts.timeout), timeout=opts.timeout
                )
                ok = response.is_success
                return FetchResult(
                    success=ok,
                    html=response.text,
                    status_code=response.status_code,
                    url=url,
                    final_url=str(response.url),
                    fetched_at=utcnow(),
                    error=None if ok else f"HTTP {response.status_code}",
                )
            except asyncio.TimeoutError:
                last_error = f"Timed out after {opts.timeout}s"
            except Exception as e:
                last_error = str(e) or type(e).__name__

            logger.warning(
                f"Fetch attempt {attempt + 1}/{opts.retries + 1} failed for {url}: {last_error}"
            )
            if attempt < opts.retries:
                await self._sleep(opts.retry_delay * (attempt + 1))

        return FetchResult(
            success=False,
            html="",
            status_code=0,
            url=url,
            final_url=url,
            fetched_at=utcnow(),
            error=last_error,
        )

    async def fetch_many(
        self,
        urls: list[str],
        options: FetchOptions | None = None,
        *,
        concurrency: int | None = None,
        delay_between: float | None = None,
    ) -> list[FetchResult]:
        """
        Fetch several pages in batches of bounded concurrency.

        Results are returned in the same order as ``urls``. A fixed delay
        separates consecutive batches.
        """
        size = max(1, concurrency or settings.fetch_concurrency)
        delay = settings.fetch_batch_delay if delay_between is None else delay_between
        results: list[FetchResult] = []

        for start in range(0, len(urls), size):
            batch = urls[start : start + size]
            results.extend(
                await asyncio.gather(*(self.fetch(url, options) for url in batch))
            )
            if start + size < len(urls):
                await self._sleep(delay)

        return results

    async def _get(self, url: str, headers: dict[str, str], timeout: float) -> httpx.Response:
        if self._client is not None:
            return await self._client.get(
                url, headers=headers, timeout=timeout, follow_redirects=True
            )

        async with httpx.AsyncClient(
            timeout=timeout, verify=False, follow_redirects=True
        ) as client:
            return await client.get(url, headers=headers)
