# drplane/services/region_health.py
"""
Region health checks

RegionHealthProbe answers "is core storage reachable in region R right now?"
and is the gate used by the failover orchestrator. RegionHealthService builds
the fuller per-region report (storage, blob store, passive replication lag).
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from drplane.core.aws import AwsClientFactory, call_blocking
from drplane.core.config import Settings
from drplane.core.constants import (
    METRIC_DYNAMODB_HEALTH,
    METRIC_REPLICATION_LAG,
    METRIC_S3_HEALTH,
    STANDING_SENTINEL_ID,
    MetricUnit,
)
from drplane.services.metrics import MetricsReporter
from drplane.services.models import HealthSnapshot

logger = logging.getLogger(__name__)


class RegionHealthProbe:
    """Minimal side-effect-free capability check, fails closed"""

    def __init__(self, clients: AwsClientFactory, timeout: float = 5.0):
        self.clients = clients
        self.timeout = timeout

    async def probe(self, region: str) -> bool:
        try:
            client = self.clients.dynamodb(region)
            await asyncio.wait_for(call_blocking(client.list_tables, Limit=1), timeout=self.timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning("Health probe timed out", extra={"region": str(region)})
            return False
        except Exception as e:
            logger.warning(f"Health probe failed: {e}", extra={"region": str(region)})
            return False


class RegionHealthService:
    """Per-region health report with metrics"""

    def __init__(
        self,
        clients: AwsClientFactory,
        config: Settings,
        probe: Optional[RegionHealthProbe] = None,
        reporter: Optional[MetricsReporter] = None,
    ):
        self.clients = clients
        self.settings = config
        self.probe = probe or RegionHealthProbe(clients, timeout=config.HEALTH_PROBE_TIMEOUT_SECONDS)
        self.reporter = reporter

    async def check_s3_health(self, region: str) -> bool:
        bucket = self.settings.backup_bucket_for(region)
        try:
            client = self.clients.s3(region)
            await asyncio.wait_for(
                call_blocking(client.list_objects_v2, Bucket=bucket, MaxKeys=1),
                timeout=self.settings.HEALTH_PROBE_TIMEOUT_SECONDS,
            )
            return True
        except Exception as e:
            logger.warning(f"S3 health check failed for bucket {bucket}: {e!r}", extra={"region": region})
            return False

    async def check_replication_lag(self, region: str) -> Optional[int]:
        """Age of the standing sentinel record as seen from this region"""
        try:
            client = self.clients.dynamodb(region)
            response = await asyncio.wait_for(
                call_blocking(
                    client.get_item,
                    TableName=self.settings.SENTINEL_TABLE,
                    Key={"id": {"S": STANDING_SENTINEL_ID}},
                ),
                timeout=self.settings.HEALTH_PROBE_TIMEOUT_SECONDS,
            )
        except Exception as e:
            logger.warning(f"Sentinel read failed: {e!r}", extra={"region": region})
            return None

        item = response.get("Item")
        if not item:
            return None

        try:
            last_updated = int(item["last_updated"]["N"])
        except (KeyError, TypeError, ValueError):
            return None

        return int(datetime.now(timezone.utc).timestamp()) - last_updated

    async def publish_metrics(self, snapshot: HealthSnapshot) -> int:
        if self.reporter is None:
            return 0

        metrics = [
            (METRIC_DYNAMODB_HEALTH, 1.0 if snapshot.dynamodb else 0.0, MetricUnit.NONE),
            (METRIC_S3_HEALTH, 1.0 if snapshot.s3 else 0.0, MetricUnit.NONE),
        ]
        if snapshot.replication_lag is not None:
            metrics.append((METRIC_REPLICATION_LAG, float(snapshot.replication_lag), MetricUnit.SECONDS))

        logger.info(f"Publishing {len(metrics)} metrics", extra={"region": snapshot.region})
        return await self.reporter.publish_many(metrics)

    async def run_health_check(self, region: str) -> HealthSnapshot:
        dynamodb_ok, s3_ok, lag = await asyncio.gather(
            self.probe.probe(region),
            self.check_s3_health(region),
            self.check_replication_lag(region),
        )

        snapshot = HealthSnapshot(region=region, dynamodb=dynamodb_ok, s3=s3_ok, replication_lag=lag)
        await self.publish_metrics(snapshot)
        return snapshot
