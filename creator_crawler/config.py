"""Application configuration using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Source site
    base_url: str = "https://patronite.pl/"
    discovery_path: str = "kategoria/47/polityka"
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
    )

    # Fetch policy
    request_timeout_seconds: float = 5.0
    transient_backoff_seconds: float = 10.0  # Timeouts, connection errors
    rate_limit_backoff_seconds: float = 2.0  # HTTP 429
    max_fetch_attempts: Optional[int] = None  # None retries transient failures forever

    # Crawl pacing
    page_delay_seconds: float = 0.5
    max_pages: Optional[int] = None
    max_concurrent_categories: int = 0  # 0 = one task per category, no cap
    crawl_timeout_seconds: Optional[float] = None
    progress_log_every: int = 10

    # Page markup markers
    recommended_heading: str = "Nasz wybór"
    all_entries_heading: str = "Wszyscy"
    patrons_marker: str = "patron"
    monthly_revenue_marker: str = "miesięcznie"
    total_revenue_marker: str = "łącznie"

    # InfluxDB
    influx_url: str = "http://localhost:8086"
    influx_token: str = ""
    influx_org: str = ""
    influx_bucket: str = ""
    influx_measurement: str = "creators"
    influx_region: str = "eu-central"
    influx_batch_size: int = 500
    record_source: str = "python"

    # App Settings
    run_crawler_as_api: bool = False
    scheduler_enabled: bool = True
    crawl_cron: str = "10 12 * * *"
    debug: bool = False
    log_level: str = "INFO"
    app_host: str = "0.0.0.0"
    app_port: int = 3000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
