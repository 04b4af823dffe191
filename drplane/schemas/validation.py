# drplane/schemas/validation.py
from pydantic import BaseModel, field_validator
from typing import List, Optional, Tuple
from datetime import datetime

from drplane.core.config import Settings
from drplane.core.constants import ValidationAction, ValidationMode, ValidationStatus
from drplane.core.input_validation import Region, TableName
from drplane.services.models import AggregatedValidationReport


class ValidationRequest(BaseModel):
    # Unknown keys are ignored so scheduler events can be passed through as-is

    validation_mode: ValidationMode = ValidationMode.INCREMENTAL
    table_name: Optional[str] = None
    source_region: Optional[str] = None
    target_region: Optional[str] = None
    action: ValidationAction = ValidationAction.VALIDATE

    @field_validator("source_region", "target_region")
    @classmethod
    def check_region(cls, v):
        return Region(v) if v is not None else v

    @field_validator("table_name")
    @classmethod
    def check_table_name(cls, v):
        return TableName(v) if v is not None else v

    def resolve_regions(self, config: Settings) -> Tuple[str, str]:
        """Regions left out of the request fall back to the configured defaults"""
        return (
            self.source_region or config.DEFAULT_SOURCE_REGION,
            self.target_region or config.DEFAULT_TARGET_REGION,
        )


class BackupStatus(BaseModel):
    last_backup_age_hours: Optional[float] = None
    backup_count: int = 0
    oldest_backup_days: Optional[float] = None


class SyncStatus(BaseModel):
    table_name: str
    items_pending: int
    performed: bool = False


class ValidationResults(BaseModel):
    tables_validated: int
    records_checked: int
    mismatches_found: int
    replication_lag_seconds: Optional[int] = None
    backup_status: BackupStatus
    consistency_score: float
    sync_results: Optional[List[SyncStatus]] = None


class ValidationResponse(BaseModel):
    status: ValidationStatus
    validation_mode: ValidationMode
    timestamp: datetime
    results: ValidationResults
    recommendations: List[str]

    @classmethod
    def from_report(cls, report: AggregatedValidationReport) -> "ValidationResponse":
        sync_results = None
        if report.sync_results is not None:
            sync_results = [
                SyncStatus(table_name=s.table, items_pending=s.items_pending, performed=s.performed)
                for s in report.sync_results
            ]

        return cls(
            status=report.status,
            validation_mode=report.mode,
            timestamp=report.timestamp,
            results=ValidationResults(
                tables_validated=report.tables_validated,
                records_checked=report.records_checked,
                mismatches_found=report.mismatches_found,
                replication_lag_seconds=report.replication_lag_seconds,
                backup_status=BackupStatus(
                    last_backup_age_hours=report.backup.last_backup_age_hours,
                    backup_count=report.backup.backup_count,
                    oldest_backup_days=report.backup.oldest_backup_age_days,
                ),
                consistency_score=report.consistency_score,
                sync_results=sync_results,
            ),
            recommendations=list(report.recommendations),
        )
