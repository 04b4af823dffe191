# drplane/services/replication.py
"""
Sentinel-based replication lag measurement

A throwaway marker is written to the primary region and the secondary is
polled until the marker shows up. The elapsed wall-clock time is the lag.
This is a slow, blocking measurement bounded by poll_interval * max_attempts.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Optional

from drplane.core.aws import AwsClientFactory, call_blocking
from drplane.core.constants import SENTINEL_MARKER_PREFIX, SENTINEL_SOURCE

logger = logging.getLogger(__name__)


def new_marker_id() -> str:
    return f"{SENTINEL_MARKER_PREFIX}-{int(time.time() * 1000)}"


class ReplicationLagProber:
    """Measure replication delay between two regions"""

    def __init__(
        self,
        clients: AwsClientFactory,
        sentinel_table: str = "dr-sentinel-table",
        poll_interval: float = 1.0,
        max_attempts: int = 10,
    ):
        self.clients = clients
        self.sentinel_table = sentinel_table
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts

    async def measure_lag(self, primary: str, secondary: str) -> Optional[int]:
        """
        Returns whole seconds from marker write to first read in the secondary,
        or None when the marker never became visible.
        """
        primary_db = self.clients.dynamodb(primary)
        secondary_db = self.clients.dynamodb(secondary)
        marker_id = new_marker_id()
        key = {"id": {"S": marker_id}}

        try:
            await call_blocking(
                primary_db.put_item,
                TableName=self.sentinel_table,
                Item={
                    "id": {"S": marker_id},
                    "timestamp": {"N": str(int(datetime.now(timezone.utc).timestamp()))},
                    "source": {"S": SENTINEL_SOURCE},
                },
            )
        except Exception as e:
            logger.warning(f"Could not write sentinel marker {marker_id}: {e}", extra={"region": primary})
            return None

        started = time.monotonic()
        try:
            return await self._wait_for_marker(secondary_db, key, started, secondary)
        finally:
            await self._delete_marker(primary_db, key, primary)

    async def _wait_for_marker(self, secondary_db, key, started: float, secondary: str) -> Optional[int]:
        for attempt in range(self.max_attempts):
            try:
                response = await call_blocking(
                    secondary_db.get_item,
                    TableName=self.sentinel_table,
                    Key=key,
                )
                if response.get("Item"):
                    lag = int(time.monotonic() - started)
                    logger.info(f"Sentinel visible after {lag}s", extra={"region": secondary})
                    return lag
            except Exception as e:
                logger.debug(f"Sentinel poll {attempt + 1} failed: {e}", extra={"region": secondary})

            if attempt + 1 < self.max_attempts:
                await asyncio.sleep(self.poll_interval)

        logger.warning(
            f"Sentinel not visible after {self.max_attempts} attempts",
            extra={"region": secondary},
        )
        return None

    async def _delete_marker(self, primary_db, key, primary: str) -> None:
        try:
            await call_blocking(primary_db.delete_item, TableName=self.sentinel_table, Key=key)
        except Exception as e:
            logger.warning(f"Failed to delete sentinel marker: {e}", extra={"region": primary})
