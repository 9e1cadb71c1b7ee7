"""Crawl orchestration: discovery, concurrent category crawls, merge."""

import asyncio
import logging
import time
from typing import Dict, Iterable, List, Optional

from creator_crawler.config import settings
from creator_crawler.ingest.category_crawler import PaginatedCategoryCrawler
from creator_crawler.ingest.category_discovery import CategoryDiscovery
from creator_crawler.ingest.http_client import PageFetcher, PageNotFoundError
from creator_crawler.models import CreatorRecord

logger = logging.getLogger(__name__)


class CrawlFailedError(RuntimeError):
    """Raised when a crawl run cannot produce a record set."""


def merge_records(records: Iterable[CreatorRecord]) -> Dict[str, CreatorRecord]:
    """
    Deduplicate records by profile URL.

    The first record seen for a URL is kept unless a later record for the
    same URL is recommended, in which case the recommended one replaces it.
    A recommended record is never replaced by a non-recommended one.
    """
    merged: Dict[str, CreatorRecord] = {}
    for record in records:
        if record.url not in merged or record.is_recommended:
            merged[record.url] = record
    return merged


class CrawlOrchestrator:
    """Runs one complete crawl of the catalog."""

    def __init__(
        self,
        fetcher: PageFetcher,
        discovery: CategoryDiscovery | None = None,
        crawler: PaginatedCategoryCrawler | None = None,
        max_concurrent_categories: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        self.fetcher = fetcher
        self.discovery = discovery or CategoryDiscovery(fetcher)
        self.crawler = crawler or PaginatedCategoryCrawler(fetcher)
        if max_concurrent_categories is None:
            max_concurrent_categories = settings.max_concurrent_categories
        self.max_concurrent_categories = max_concurrent_categories
        self.timeout = timeout if timeout is not None else settings.crawl_timeout_seconds

    async def _crawl_categories(self, categories: List[str]) -> List[List[CreatorRecord]]:
        if self.max_concurrent_categories and self.max_concurrent_categories > 0:
            semaphore = asyncio.Semaphore(self.max_concurrent_categories)

            async def bounded(category: str) -> List[CreatorRecord]:
                async with semaphore:
                    return await self.crawler.crawl(category)

            coros = [bounded(category) for category in categories]
        else:
            coros = [self.crawler.crawl(category) for category in categories]

        tasks = [asyncio.ensure_future(coro) for coro in coros]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            # The fetcher is closed once the run ends; no category may outlive it
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _run(self) -> Dict[str, CreatorRecord]:
        try:
            categories = await self.discovery.discover()
        except PageNotFoundError as e:
            raise CrawlFailedError(f"Category discovery failed: {e}") from e

        per_category = await self._crawl_categories(categories)
        flattened = [record for records in per_category for record in records]
        merged = merge_records(flattened)

        logger.info(
            f"Crawled {len(categories)} categories: {len(flattened)} records, "
            f"{len(merged)} after deduplication"
        )
        return merged

    async def run(self) -> Dict[str, CreatorRecord]:
        """
        Crawl every category and return the merged records keyed by URL.

        Raises:
            CrawlFailedError: Discovery failed or the run timed out
        """
        start = time.perf_counter()
        logger.info("Starting crawl")

        if self.timeout is None:
            merged = await self._run()
        else:
            try:
                merged = await asyncio.wait_for(self._run(), timeout=self.timeout)
            except asyncio.TimeoutError as e:
                raise CrawlFailedError(f"Crawl did not finish within {self.timeout:.0f}s") from e

        logger.info(f"Crawl finished in {time.perf_counter() - start:.1f}s")
        return merged
