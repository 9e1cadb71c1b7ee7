"""Prometheus metrics for the creator crawler."""

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
app_info = Info("creator_crawler", "Creator crawler application info")
app_info.info({"version": "0.1.0", "name": "creator-crawler"})

# Fetch metrics
page_fetches_total = Counter(
    "page_fetches_total",
    "Total number of page fetches by final outcome",
    ["outcome"],
)

page_fetch_retries_total = Counter(
    "page_fetch_retries_total",
    "Total number of fetch retries",
    ["kind"],
)

page_fetch_duration_seconds = Histogram(
    "page_fetch_duration_seconds",
    "Time spent on a single fetch attempt",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
)

# Extraction metrics
records_extracted_total = Counter(
    "records_extracted_total",
    "Total number of creator records extracted",
    ["section"],
)

categories_discovered = Gauge(
    "categories_discovered",
    "Number of categories found by the last discovery pass",
)

# Run metrics
crawl_runs_total = Counter(
    "crawl_runs_total",
    "Total number of crawl runs",
    ["trigger", "status"],
)

crawl_duration_seconds = Histogram(
    "crawl_duration_seconds",
    "Duration of a full crawl run including the sink write",
    buckets=[30, 60, 120, 300, 600, 1200, 1800, 3600],
)

crawl_last_success_timestamp = Gauge(
    "crawl_last_success_timestamp",
    "Timestamp of the last successful crawl run",
)

records_written = Gauge(
    "records_written",
    "Number of deduplicated records written by the last run",
)
