"""Tests for the crawl task runner."""

import asyncio

import pytest

from creator_crawler.ingest.orchestrator import CrawlFailedError
from creator_crawler.models import CreatorRecord
from creator_crawler.sink.influx_writer import SinkWriteError
from creator_crawler.worker import tasks
from creator_crawler.worker.tasks import CrawlAlreadyRunningError, TaskRunner


class FakeFetcher:
    closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        FakeFetcher.closed = True


class FakeSink:

    def __init__(self):
        self.written = []

    async def write(self, records):
        records = list(records)
        self.written.extend(records)
        return len(records)


def _orchestrator_returning(result=None, error=None, delay=0.0):
    class StubOrchestrator:

        def __init__(self, fetcher):
            self.fetcher = fetcher

        async def run(self):
            await asyncio.sleep(delay)
            if error is not None:
                raise error
            return result

    return StubOrchestrator


@pytest.mark.asyncio
async def test_run_crawl_writes_merged_records(monkeypatch):
    records = {
        "a": CreatorRecord(url="a", name="A"),
        "b": CreatorRecord(url="b", name="B", is_recommended=True),
    }
    monkeypatch.setattr(tasks, "CrawlOrchestrator", _orchestrator_returning(records))
    sink = FakeSink()
    FakeFetcher.closed = False
    runner = TaskRunner(sink_factory=lambda: sink, fetcher_factory=FakeFetcher)

    written = await runner.run_crawl(trigger="manual")

    assert written == 2
    assert [r.url for r in sink.written] == ["a", "b"]
    assert FakeFetcher.closed is True
    assert runner.last_run_at is not None
    assert runner.is_running is False


@pytest.mark.asyncio
async def test_failed_crawl_propagates_and_skips_sink(monkeypatch):
    monkeypatch.setattr(
        tasks, "CrawlOrchestrator", _orchestrator_returning(error=CrawlFailedError("discovery"))
    )
    sink = FakeSink()
    runner = TaskRunner(sink_factory=lambda: sink, fetcher_factory=FakeFetcher)

    with pytest.raises(CrawlFailedError):
        await runner.run_crawl()

    assert sink.written == []
    assert runner.last_run_at is None


@pytest.mark.asyncio
async def test_overlapping_runs_are_rejected(monkeypatch):
    monkeypatch.setattr(tasks, "CrawlOrchestrator", _orchestrator_returning({}, delay=0.05))
    runner = TaskRunner(sink_factory=FakeSink, fetcher_factory=FakeFetcher)

    first = asyncio.create_task(runner.run_crawl())
    await asyncio.sleep(0.01)

    assert runner.is_running is True
    with pytest.raises(CrawlAlreadyRunningError):
        await runner.run_crawl()

    assert await first == 0


@pytest.mark.asyncio
async def test_scheduled_crawl_skips_when_busy(monkeypatch):
    monkeypatch.setattr(tasks, "CrawlOrchestrator", _orchestrator_returning({}, delay=0.05))
    runner = TaskRunner(sink_factory=FakeSink, fetcher_factory=FakeFetcher)

    first = asyncio.create_task(runner.run_crawl())
    await asyncio.sleep(0.01)

    await runner.scheduled_crawl()

    assert await first == 0


class RejectingSink:

    async def write(self, records):
        raise SinkWriteError("InfluxDB rejected write (401 Unauthorized)")


@pytest.mark.asyncio
async def test_rejected_write_fails_the_run(monkeypatch):
    records = {"a": CreatorRecord(url="a", name="A")}
    monkeypatch.setattr(tasks, "CrawlOrchestrator", _orchestrator_returning(records))
    runner = TaskRunner(sink_factory=RejectingSink, fetcher_factory=FakeFetcher)

    with pytest.raises(SinkWriteError):
        await runner.run_crawl()

    assert runner.last_run_at is None
    assert runner.is_running is False
