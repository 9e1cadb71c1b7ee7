"""Discover the category listing paths from the category tag cloud."""

import logging
from typing import List, Optional
from urllib.parse import urlparse

from creator_crawler.config import settings
from creator_crawler.ingest.http_client import PageFetcher
from creator_crawler.ingest.record_extractor import sibling_elements
from creator_crawler import metrics

logger = logging.getLogger(__name__)


def category_id_from_href(href: str, base_url: str) -> str:
    """
    Turn a category link into the path used for paginated requests.

    "https://patronite.pl/kategoria/47/polityka" -> "kategoria/47/polityka"
    """
    if href.startswith(base_url):
        return href[len(base_url):].strip("/")
    return urlparse(href).path.strip("/")


class CategoryDiscovery:
    """Reads the category list from one fixed listing page."""

    def __init__(
        self,
        fetcher: PageFetcher,
        path: str | None = None,
        base_url: str | None = None,
    ):
        self.fetcher = fetcher
        self.path = path or settings.discovery_path
        self.base_url = base_url or settings.base_url

    async def discover(self) -> List[str]:
        """
        Fetch the discovery page and list its categories.

        Raises:
            PageNotFoundError: The discovery page could not be fetched
        """
        tree = await self.fetcher.fetch(self.path)

        link_count = len(tree.css("div.tags a"))
        first_item = tree.css_first("div.tags div")
        if link_count == 0 or first_item is None:
            logger.warning(f"No categories found on {self.path}")
            metrics.categories_discovered.set(0)
            return []

        categories: List[str] = []
        for item in sibling_elements(first_item, link_count):
            link = item.css_first("a")
            href: Optional[str] = link.attributes.get("href") if link is not None else None
            if not href:
                continue
            category = category_id_from_href(href, self.base_url)
            if category and category not in categories:
                categories.append(category)

        logger.info(f"Discovered {len(categories)} categories")
        metrics.categories_discovered.set(len(categories))
        return categories
