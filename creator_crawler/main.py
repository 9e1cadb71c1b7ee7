"""Main application entry point."""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from creator_crawler.config import settings
from creator_crawler.worker.scheduler import setup_scheduler
from creator_crawler.worker.tasks import task_runner
from creator_crawler.api.routes import crawls

# Configure structured logging
from creator_crawler.logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

# Global scheduler
scheduler = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    global scheduler

    logger.info("Starting creator crawler API...")

    if settings.scheduler_enabled:
        scheduler = setup_scheduler()
        scheduler.start()
        logger.info("Scheduler started")

    yield

    logger.info("Shutting down...")
    if scheduler:
        scheduler.shutdown()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Creator Crawler",
    description="Crawl the creator catalog and store it in InfluxDB",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add Prometheus instrumentation
instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/health", "/favicon.ico"],
)
instrumentator.instrument(app).expose(app, include_in_schema=True, tags=["monitoring"])

app.include_router(crawls.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/favicon.ico")
async def favicon():
    """Return empty favicon response to avoid 404 noise."""
    return Response(status_code=204)


async def run_standalone() -> int:
    """Run one crawl + write and return the process exit code."""
    try:
        await task_runner.run_crawl(trigger="cli")
    except Exception:
        # run_crawl already logged the traceback
        return 1
    return 0


def cli():
    """Serve the API when RUN_CRAWLER_AS_API is set, otherwise crawl once."""
    if settings.run_crawler_as_api:
        uvicorn.run(
            "creator_crawler.main:app",
            host=settings.app_host,
            port=settings.app_port,
            reload=settings.debug,
            log_level=settings.log_level.lower(),
        )
    else:
        sys.exit(asyncio.run(run_standalone()))


if __name__ == "__main__":
    cli()
