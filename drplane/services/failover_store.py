# drplane/services/failover_store.py
"""
Single-slot failover status record

The latest failover/failback decision is stored under one fixed key in the
metadata table. Each write replaces the previous record (last writer wins);
this is current state, not an audit log.
"""

import logging
from typing import Optional

from drplane.core.aws import call_blocking
from drplane.services.models import FailoverRecord

logger = logging.getLogger(__name__)


class FailoverRecordStore:

    def __init__(self, dynamodb_client, table_name: str = "dr-backup-metadata", record_id: str = "failover_status"):
        self.dynamodb = dynamodb_client
        self.table_name = table_name
        self.record_id = record_id

    async def put(self, record: FailoverRecord) -> None:
        await call_blocking(
            self.dynamodb.put_item,
            TableName=self.table_name,
            Item=record.to_item(self.record_id),
        )
        logger.info(
            f"Recorded {record.action.value} {record.status.value}: "
            f"{record.source_region} -> {record.target_region}",
            extra={"action": record.action.value, "region": record.target_region},
        )

    async def get_current(self) -> Optional[FailoverRecord]:
        response = await call_blocking(
            self.dynamodb.get_item,
            TableName=self.table_name,
            Key={"backup_id": {"S": self.record_id}},
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item:
            return None
        return FailoverRecord.from_item(item)
