"""Crawl trigger API endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from creator_crawler.ingest.orchestrator import CrawlFailedError
from creator_crawler.sink.influx_writer import SinkWriteError
from creator_crawler.worker.tasks import CrawlAlreadyRunningError, task_runner

logger = logging.getLogger(__name__)

router = APIRouter(tags=["crawls"])


class CrawlResultResponse(BaseModel):
    """Response model for a completed crawl run."""
    status: str
    records: int


class CrawlStatusResponse(BaseModel):
    """Response model for the crawl runner state."""
    running: bool
    last_run_at: Optional[float]


@router.get("/authors", response_model=CrawlResultResponse)
async def crawl_authors():
    """Crawl the catalog now and write the result to InfluxDB."""
    try:
        written = await task_runner.run_crawl(trigger="manual")
    except CrawlAlreadyRunningError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except (CrawlFailedError, SinkWriteError) as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return CrawlResultResponse(status="ok", records=written)


@router.get("/authors/status", response_model=CrawlStatusResponse)
async def crawl_status():
    """Report whether a crawl is currently running."""
    return CrawlStatusResponse(
        running=task_runner.is_running,
        last_run_at=task_runner.last_run_at,
    )
