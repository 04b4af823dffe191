# drplane/services/metrics.py
"""
Fire-and-forget metric publishing to CloudWatch

Every datum is sent in its own call so one rejected metric never blocks
the others. Failures are logged and reported as False, never raised.
"""

from datetime import datetime, timezone
from typing import Iterable, Tuple
import logging

from drplane.core.aws import call_blocking
from drplane.core.constants import MetricUnit

logger = logging.getLogger(__name__)


class MetricsReporter:
    """Publish numeric signals to an external metrics collector"""

    def __init__(self, cloudwatch_client, namespace: str = "DisasterRecovery"):
        self.cloudwatch = cloudwatch_client
        self.namespace = namespace

    async def publish(self, metric_name: str, value: float, unit: MetricUnit = MetricUnit.NONE) -> bool:
        try:
            datum = {
                "MetricName": metric_name,
                "Value": float(value),
                "Unit": MetricUnit(unit).value,
                "Timestamp": datetime.now(timezone.utc),
            }
            await call_blocking(
                self.cloudwatch.put_metric_data,
                Namespace=self.namespace,
                MetricData=[datum],
            )
            return True
        except Exception as e:
            logger.error(f"Failed to publish metric {metric_name}: {e}")
            return False

    async def publish_many(self, metrics: Iterable[Tuple[str, float, MetricUnit]]) -> int:
        """Publish each metric independently, returns how many were accepted"""
        published = 0
        for metric_name, value, unit in metrics:
            if await self.publish(metric_name, value, unit):
                published += 1
        return published
