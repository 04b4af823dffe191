# drplane/services/models.py
"""Value types produced by the validation and failover services"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from drplane.core.constants import (
    FailoverAction,
    FailoverRecordStatus,
    ValidationMode,
    ValidationStatus,
)


@dataclass(frozen=True)
class TableValidationResult:
    table: str
    primary_count: int
    secondary_count: int
    sampled_mismatches: Tuple[str, ...] = ()

    @property
    def mismatch_count(self) -> int:
        return abs(self.primary_count - self.secondary_count) + len(self.sampled_mismatches)

    @property
    def items_pending_sync(self) -> int:
        return max(self.primary_count - self.secondary_count, 0)


@dataclass(frozen=True)
class BackupRecord:
    backup_id: str
    timestamp: Optional[int]
    status: Optional[str] = None
    table_name: Optional[str] = None
    items_count: Optional[int] = None


@dataclass(frozen=True)
class BackupFreshness:
    last_backup_age_hours: Optional[float] = None
    backup_count: int = 0
    oldest_backup_age_days: Optional[float] = None

    @classmethod
    def unknown(cls) -> "BackupFreshness":
        return cls()


@dataclass(frozen=True)
class SyncResult:
    """Outstanding reconciliation for one table. No data is copied."""
    table: str
    items_pending: int
    performed: bool = False


@dataclass(frozen=True)
class AggregatedValidationReport:
    status: ValidationStatus
    mode: ValidationMode
    timestamp: datetime
    tables_validated: int
    records_checked: int
    mismatches_found: int
    replication_lag_seconds: Optional[int]
    backup: BackupFreshness
    consistency_score: float
    recommendations: Tuple[str, ...]
    sync_results: Optional[Tuple[SyncResult, ...]] = None


@dataclass(frozen=True)
class FailoverRecord:
    action: FailoverAction
    source_region: str
    target_region: str
    status: FailoverRecordStatus
    timestamp: datetime

    def to_item(self, record_id: str) -> Dict[str, Dict[str, str]]:
        """DynamoDB item keyed by the fixed single-slot id"""
        return {
            "backup_id": {"S": record_id},
            "timestamp": {"N": str(int(self.timestamp.timestamp()))},
            "action": {"S": self.action.value},
            "source_region": {"S": self.source_region},
            "target_region": {"S": self.target_region},
            "status": {"S": self.status.value},
        }

    @classmethod
    def from_item(cls, item: Dict[str, Dict[str, Any]]) -> "FailoverRecord":
        return cls(
            action=FailoverAction(item["action"]["S"]),
            source_region=item["source_region"]["S"],
            target_region=item["target_region"]["S"],
            status=FailoverRecordStatus(item["status"]["S"]),
            timestamp=datetime.fromtimestamp(int(item["timestamp"]["N"]), tz=timezone.utc),
        )


@dataclass
class HealthSnapshot:
    region: str
    dynamodb: bool
    s3: bool
    replication_lag: Optional[int] = None

    @property
    def healthy(self) -> bool:
        return self.dynamodb and self.s3
