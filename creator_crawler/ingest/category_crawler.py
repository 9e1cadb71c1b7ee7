"""Paginated crawl of a single category."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from selectolax.parser import HTMLParser, Node

from creator_crawler.config import settings
from creator_crawler.ingest.http_client import PageFetcher, PageNotFoundError
from creator_crawler.ingest.record_extractor import RecordExtractor
from creator_crawler.logging_config import crawl_category
from creator_crawler.models import CreatorRecord
from creator_crawler import metrics

logger = logging.getLogger(__name__)


class MissingListingError(PageNotFoundError):
    """Raised when a fetched page has no "all entries" section."""

    def __init__(self, url: str, page_number: int, heading: str):
        super().__init__(url, f"page {page_number} ({url}) has no '{heading}' section")
        self.page_number = page_number


def find_section(tree: HTMLParser, heading: str) -> Optional[Node]:
    """Return the section whose ``h4`` heading contains ``heading``."""
    for node in tree.css("h4"):
        if heading in node.text():
            parent = node.parent
            return parent.parent if parent is not None else None
    return None


class PaginatedCategoryCrawler:
    """
    Walks ``/<category>?page=N`` from page 1 until a page cannot be fetched.

    The listing exposes no page count, so the first NotFound page marks the
    end of the category.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        extractor: RecordExtractor | None = None,
        page_delay: float | None = None,
        max_pages: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.fetcher = fetcher
        self.extractor = extractor or RecordExtractor()
        self.page_delay = settings.page_delay_seconds if page_delay is None else page_delay
        self.max_pages = max_pages if max_pages is not None else settings.max_pages
        self.recommended_heading = settings.recommended_heading
        self.all_entries_heading = settings.all_entries_heading
        self._sleep = sleep

    def extract_page(self, tree: HTMLParser, page_number: int, url: str) -> List[CreatorRecord]:
        """
        Extract the records of one listing page.

        Featured creators are only read from page 1 and come first.

        Raises:
            MissingListingError: The page has no "all entries" section
        """
        all_section = find_section(tree, self.all_entries_heading)
        if all_section is None:
            raise MissingListingError(url, page_number, self.all_entries_heading)

        records: List[CreatorRecord] = []
        if page_number == 1:
            recommended_section = find_section(tree, self.recommended_heading)
            if recommended_section is not None:
                recommended = self.extractor.extract_many(recommended_section, is_recommended=True)
                metrics.records_extracted_total.labels(section="recommended").inc(len(recommended))
                records.extend(recommended)

        general = self.extractor.extract_many(all_section, is_recommended=False)
        metrics.records_extracted_total.labels(section="all").inc(len(general))
        records.extend(general)
        return records

    async def crawl(self, category: str) -> List[CreatorRecord]:
        """Crawl every page of ``category`` and return the records in page order."""
        token = crawl_category.set(category)
        try:
            return await self._crawl_pages(category)
        finally:
            crawl_category.reset(token)

    async def _crawl_pages(self, category: str) -> List[CreatorRecord]:
        records: List[CreatorRecord] = []
        page_number = 1

        logger.info(f"Retrieving {category}")
        while True:
            if page_number % settings.progress_log_every == 0:
                logger.info(f"{category}: page {page_number}")

            path, params = f"/{category}", {"page": page_number}
            try:
                tree = await self.fetcher.fetch(path, params=params)
                page_records = self.extract_page(tree, page_number, self.fetcher.url_for(path, params))
            except PageNotFoundError as e:
                logger.info(f"{category}: finished at page {page_number}")
                logger.debug(f"{category}: {e}")
                break

            records.extend(page_records)

            if self.max_pages is not None and page_number >= self.max_pages:
                logger.warning(f"{category}: stopping at page limit {self.max_pages}")
                break

            page_number += 1
            await self._sleep(self.page_delay)

        return records
