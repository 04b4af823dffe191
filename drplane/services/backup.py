# drplane/services/backup.py
"""
Table backups to S3 and backup metadata

BackupService scans a table, serializes it to JSON in the backup bucket and
writes one metadata row per backup. BackupMetadataStore reads those rows back
to compute backup freshness for the validator.
"""

import base64
import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from boto3.dynamodb.types import Binary, TypeDeserializer

from drplane.core.aws import call_blocking
from drplane.core.exceptions import BackupError
from drplane.services.models import BackupFreshness, BackupRecord

logger = logging.getLogger(__name__)

_deserializer = TypeDeserializer()


def generate_backup_id(table_name: str, backup_type: str, timestamp: int) -> str:
    return f"{table_name}-{backup_type}-{timestamp}"


def _json_default(value: Any):
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    # Binary attributes are written as base64 text
    if isinstance(value, (Binary, bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def item_to_plain(item: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    """Convert a low-level DynamoDB item to plain Python values"""
    return {key: _deserializer.deserialize(value) for key, value in item.items()}


def _parse_int(attribute: Optional[Dict[str, Any]]) -> Optional[int]:
    # Rows written by different tools store numbers as N or S
    if not attribute:
        return None
    raw = attribute.get("N", attribute.get("S"))
    try:
        return int(float(raw))
    except (TypeError, ValueError):
        return None


def compute_backup_freshness(records: Iterable[BackupRecord], now: Optional[datetime] = None) -> BackupFreshness:
    records = list(records)
    current = int((now or datetime.now(timezone.utc)).timestamp())
    timestamps = [r.timestamp for r in records if r.timestamp is not None and r.timestamp > 0]

    if not timestamps:
        return BackupFreshness(backup_count=len(records))

    return BackupFreshness(
        last_backup_age_hours=(current - max(timestamps)) / 3600.0,
        backup_count=len(records),
        oldest_backup_age_days=(current - min(timestamps)) / 86400.0,
    )


class BackupMetadataStore:
    """Read side of the backup metadata table"""

    def __init__(self, dynamodb_client, table_name: str = "dr-backup-metadata", exclude_ids: Iterable[str] = ()):
        self.dynamodb = dynamodb_client
        self.table_name = table_name
        self.exclude_ids = set(exclude_ids)

    async def list_backup_records(self) -> List[BackupRecord]:
        records = []
        start_key = None

        while True:
            params = {"TableName": self.table_name}
            if start_key:
                params["ExclusiveStartKey"] = start_key

            response = await call_blocking(self.dynamodb.scan, **params)

            for item in response.get("Items", []):
                backup_id = item.get("backup_id", {}).get("S", "")
                if backup_id in self.exclude_ids:
                    continue

                records.append(BackupRecord(
                    backup_id=backup_id,
                    timestamp=_parse_int(item.get("timestamp")),
                    status=item.get("status", {}).get("S"),
                    table_name=item.get("table_name", {}).get("S"),
                    items_count=_parse_int(item.get("items_count")),
                ))

            start_key = response.get("LastEvaluatedKey")
            if not start_key:
                break

        return records

    async def get_freshness(self) -> BackupFreshness:
        return compute_backup_freshness(await self.list_backup_records())


class BackupService:
    """Automated table backup to blob storage"""

    def __init__(self, dynamodb_client, s3_client, backup_bucket: str, metadata_table: str = "dr-backup-metadata"):
        self.dynamodb = dynamodb_client
        self.s3 = s3_client
        self.backup_bucket = backup_bucket
        self.metadata_table = metadata_table

    async def scan_table(self, table_name: str) -> List[Dict[str, Any]]:
        items = []
        start_key = None

        while True:
            params = {"TableName": table_name}
            if start_key:
                params["ExclusiveStartKey"] = start_key

            response = await call_blocking(self.dynamodb.scan, **params)
            items.extend(item_to_plain(item) for item in response.get("Items", []))

            start_key = response.get("LastEvaluatedKey")
            if not start_key:
                break

        return items

    async def create_backup(self, table_name: str, backup_type: str) -> Dict[str, Any]:
        """Dump the table to S3, returns backup id, key and item count"""
        timestamp = int(datetime.now(timezone.utc).timestamp())
        backup_id = generate_backup_id(table_name, backup_type, timestamp)

        items = await self.scan_table(table_name)

        s3_key = f"backups/{table_name}/{backup_id}.json"
        body = json.dumps(items, default=_json_default).encode("utf-8")

        await call_blocking(
            self.s3.put_object,
            Bucket=self.backup_bucket,
            Key=s3_key,
            Body=body,
            ContentType="application/json",
            ServerSideEncryption="AES256",
        )

        logger.info(f"Created backup {backup_id} with {len(items)} items", extra={"table": table_name})

        return {"backup_id": backup_id, "s3_key": s3_key, "items_count": len(items), "timestamp": timestamp}

    async def record_backup(self, backup_id: str, table_name: str, items_count: int, timestamp: int) -> None:
        await call_blocking(
            self.dynamodb.put_item,
            TableName=self.metadata_table,
            Item={
                "backup_id": {"S": backup_id},
                "table_name": {"S": table_name},
                "timestamp": {"N": str(timestamp)},
                "items_count": {"N": str(items_count)},
                "status": {"S": "completed"},
            },
        )

    async def run_backup(self, table_name: str, backup_type: str = "full") -> Dict[str, Any]:
        try:
            backup = await self.create_backup(table_name, backup_type)
            await self.record_backup(
                backup["backup_id"], table_name, backup["items_count"], backup["timestamp"]
            )
        except Exception as e:
            logger.error(f"Backup of {table_name} failed: {e}", extra={"table": table_name})
            raise BackupError(f"Backup of table {table_name} failed") from e

        return {
            "status": "success",
            "backup_id": backup["backup_id"],
            "timestamp": datetime.now(timezone.utc),
            "items_backed_up": backup["items_count"],
        }
