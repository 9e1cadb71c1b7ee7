"""Crawl run entry points shared by the scheduler, the API and the CLI."""

import asyncio
import logging
import time
from typing import Callable, Iterable, Optional, Protocol

from creator_crawler.ingest.http_client import PageFetcher
from creator_crawler.ingest.orchestrator import CrawlOrchestrator
from creator_crawler.models import CreatorRecord
from creator_crawler.sink.influx_writer import InfluxRecordSink
from creator_crawler import metrics

logger = logging.getLogger(__name__)


class RecordSink(Protocol):
    async def write(self, records: Iterable[CreatorRecord]) -> int:
        ...


class CrawlAlreadyRunningError(RuntimeError):
    """Raised when a crawl is triggered while another one is in progress."""


class TaskRunner:
    """
    Runs crawl + write cycles, one at a time.

    Each run gets a fresh fetcher and orchestrator; nothing crawled is kept
    between runs.
    """

    def __init__(
        self,
        sink_factory: Callable[[], RecordSink] = InfluxRecordSink,
        fetcher_factory: Callable[[], PageFetcher] = PageFetcher,
    ):
        self.sink_factory = sink_factory
        self.fetcher_factory = fetcher_factory
        self._lock = asyncio.Lock()
        self.last_run_at: Optional[float] = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run_crawl(self, trigger: str = "manual") -> int:
        """
        Crawl the catalog and write the merged records to the sink.

        Args:
            trigger: Label for logs and metrics ("manual", "scheduled", "cli")

        Returns:
            Number of records written

        Raises:
            CrawlAlreadyRunningError: Another run is in progress
            CrawlFailedError: The crawl produced no record set
        """
        if self._lock.locked():
            raise CrawlAlreadyRunningError("A crawl is already running")

        async with self._lock:
            start = time.perf_counter()
            logger.info(f"Crawl run started (trigger={trigger})")
            try:
                async with self.fetcher_factory() as fetcher:
                    records = await CrawlOrchestrator(fetcher).run()
                written = await self.sink_factory().write(records.values())
            except Exception:
                metrics.crawl_runs_total.labels(trigger=trigger, status="failed").inc()
                logger.exception(f"Crawl run failed (trigger={trigger})")
                raise

            metrics.crawl_runs_total.labels(trigger=trigger, status="success").inc()
            metrics.crawl_duration_seconds.observe(time.perf_counter() - start)
            metrics.crawl_last_success_timestamp.set_to_current_time()
            metrics.records_written.set(written)
            self.last_run_at = time.time()
            logger.info(f"Crawl run finished: {written} records written")
            return written

    async def scheduled_crawl(self):
        """Cron entry point; an overlapping run is skipped."""
        try:
            await self.run_crawl(trigger="scheduled")
        except CrawlAlreadyRunningError:
            logger.warning("Skipping scheduled crawl, previous run still in progress")


task_runner = TaskRunner()
