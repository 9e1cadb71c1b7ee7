"""Tests for structured log fields."""

import json
import logging

import pytest

from creator_crawler.ingest.category_crawler import PaginatedCategoryCrawler
from creator_crawler.ingest.http_client import PageNotFoundError
from creator_crawler.logging_config import CustomJsonFormatter, crawl_category


def _format(message="hello"):
    record = logging.LogRecord(
        name="creator_crawler.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
        func="some_function",
    )
    return json.loads(CustomJsonFormatter("%(message)s").format(record))


def test_json_record_has_standard_fields():
    payload = _format()

    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "creator_crawler.test"
    assert payload["function"] == "some_function"
    assert "category" not in payload


def test_json_record_carries_current_category():
    token = crawl_category.set("polityka")
    try:
        payload = _format()
    finally:
        crawl_category.reset(token)

    assert payload["category"] == "polityka"


class CategoryRecordingFetcher:
    """Fetcher stub that notes which category is active on each fetch."""

    def __init__(self):
        self.seen = []

    async def fetch(self, path, params=None):
        self.seen.append(crawl_category.get())
        raise PageNotFoundError(path, "gone")

    def url_for(self, path, params=None):
        return path


@pytest.mark.asyncio
async def test_crawl_scopes_category_to_the_crawl():
    fetcher = CategoryRecordingFetcher()
    crawler = PaginatedCategoryCrawler(fetcher)

    await crawler.crawl("alpha")

    assert fetcher.seen == ["alpha"]
    assert crawl_category.get() is None
