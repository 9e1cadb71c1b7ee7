"""Write crawled creator records to InfluxDB."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.write_api import SYNCHRONOUS
from influxdb_client.rest import ApiException

from creator_crawler.config import settings
from creator_crawler.models import CreatorRecord

logger = logging.getLogger(__name__)


class SinkWriteError(RuntimeError):
    """Raised when InfluxDB rejects a write."""

    def __init__(self, message: str, written: int = 0):
        super().__init__(message)
        self.written = written


def build_point(
    record: CreatorRecord,
    source: str | None = None,
    measurement: str | None = None,
    timestamp: Optional[datetime] = None,
) -> Point:
    """
    Build one InfluxDB point for a creator record.

    Descriptive fields become tags, metrics become integer fields. Unknown
    metrics keep their -1 marker.
    """
    return (
        Point(measurement or settings.influx_measurement)
        .time(timestamp or datetime.now(timezone.utc), WritePrecision.NS)
        .tag("url", record.url)
        .tag("name", record.name)
        .tag("image_url", record.image_url)
        .tag("is_recommended", "true" if record.is_recommended else "false")
        .tag("tags", record.tags_csv)
        .tag("source", source or settings.record_source)
        .field("monthly_revenue", int(round(record.monthly_revenue)))
        .field("number_of_patrons", int(round(record.number_of_patrons)))
        .field("total_revenue", int(round(record.total_revenue)))
    )


class InfluxRecordSink:
    """Chunked, synchronous writer for one crawl result."""

    def __init__(
        self,
        url: str | None = None,
        token: str | None = None,
        org: str | None = None,
        bucket: str | None = None,
        batch_size: int | None = None,
    ):
        self.url = url or settings.influx_url
        self.token = token or settings.influx_token
        self.org = org or settings.influx_org
        self.bucket = bucket or settings.influx_bucket
        self.batch_size = batch_size or settings.influx_batch_size

    def _write_sync(self, points: List[Point]) -> int:
        written = 0
        with InfluxDBClient(
            url=self.url,
            token=self.token,
            org=self.org,
            default_tags={"region": settings.influx_region},
        ) as client:
            with client.write_api(write_options=SYNCHRONOUS) as write_api:
                for start in range(0, len(points), self.batch_size):
                    chunk = points[start:start + self.batch_size]
                    try:
                        write_api.write(bucket=self.bucket, org=self.org, record=chunk)
                    except ApiException as e:
                        logger.error(
                            f"InfluxDB write to {self.org}/{self.bucket} failed after "
                            f"{written}/{len(points)} points: {e.status} {e.reason}"
                        )
                        raise SinkWriteError(
                            f"InfluxDB rejected write ({e.status} {e.reason})", written=written
                        ) from e
                    written += len(chunk)
        logger.info("Write finished")
        return written

    async def write(self, records: Iterable[CreatorRecord]) -> int:
        """
        Write all records, one synchronous request per batch.

        Returns:
            Number of points accepted by InfluxDB

        Raises:
            SinkWriteError: InfluxDB rejected a batch
        """
        now = datetime.now(timezone.utc)
        points = [build_point(record, timestamp=now) for record in records]
        if not points:
            logger.warning("No records to write")
            return 0
        logger.info(f"Writing {len(points)} records to InfluxDB bucket {self.bucket}")
        return await asyncio.to_thread(self._write_sync, points)
