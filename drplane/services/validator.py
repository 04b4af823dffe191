# drplane/services/validator.py
"""
Cross-region consistency validation

Samples each selected table, measures replication lag and backup freshness,
and folds everything into one AggregatedValidationReport. Sub-operations run
concurrently, each under its own timeout; the report is only assembled once
all of them have resolved. A broken table is logged and left out of the
totals instead of failing the run.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from drplane.core.config import Settings
from drplane.core.constants import (
    METRIC_CONSISTENCY_SCORE,
    METRIC_MISMATCHES,
    MetricUnit,
    ValidationAction,
    ValidationMode,
    ValidationStatus,
)
from drplane.recommendations import generate_recommendations
from drplane.services.backup import BackupMetadataStore
from drplane.services.metrics import MetricsReporter
from drplane.services.models import (
    AggregatedValidationReport,
    BackupFreshness,
    SyncResult,
    TableValidationResult,
)
from drplane.services.replication import ReplicationLagProber
from drplane.services.sampler import TableConsistencySampler

logger = logging.getLogger(__name__)


def calculate_consistency_score(records_checked: int, mismatches_found: int) -> float:
    """
    Percentage of checked records estimated to match.

    Vacuously 100.0 when nothing was checked. Clamped at 0 because count
    deltas and sampled mismatches can together exceed the record count.
    """
    if records_checked == 0:
        return 100.0
    score = (records_checked - mismatches_found) / records_checked * 100.0
    return max(0.0, score)


class ConsistencyValidator:
    """Aggregate cross-region state into a single health signal"""

    def __init__(
        self,
        sampler: TableConsistencySampler,
        prober: ReplicationLagProber,
        backup_store: BackupMetadataStore,
        config: Settings,
        source_region: str,
        target_region: str,
        reporter: Optional[MetricsReporter] = None,
    ):
        self.sampler = sampler
        self.prober = prober
        self.backup_store = backup_store
        self.settings = config
        self.source_region = source_region
        self.target_region = target_region
        self.reporter = reporter

    def select_tables(self, table_filter: Optional[str]) -> List[str]:
        if table_filter:
            return [table_filter]
        return list(self.settings.DEFAULT_TABLES)

    async def _sample_table(self, table: str) -> Optional[TableValidationResult]:
        try:
            return await asyncio.wait_for(
                self.sampler.sample(table),
                timeout=self.settings.SAMPLER_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.error(f"Validation of table {table} timed out", extra={"table": table})
        except Exception as e:
            logger.error(f"Failed to validate table {table}: {e}", extra={"table": table})
        return None

    async def _measure_lag(self) -> Optional[int]:
        try:
            return await asyncio.wait_for(
                self.prober.measure_lag(self.source_region, self.target_region),
                timeout=self.settings.lag_probe_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Replication lag probe timed out")
        except Exception as e:
            logger.warning(f"Replication lag probe failed: {e}")
        return None

    async def _backup_freshness(self) -> BackupFreshness:
        try:
            return await asyncio.wait_for(
                self.backup_store.get_freshness(),
                timeout=self.settings.BACKUP_METADATA_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError:
            logger.warning("Backup metadata fetch timed out")
        except Exception as e:
            logger.warning(f"Backup metadata fetch failed: {e}")
        return BackupFreshness.unknown()

    def plan_sync(self, validation: TableValidationResult) -> SyncResult:
        """Count what a reconciliation would copy. Nothing is copied."""
        pending = validation.items_pending_sync
        logger.warning(
            f"Sync requested: {pending} items would be synced to DR region; no data was copied",
            extra={"table": validation.table},
        )
        return SyncResult(table=validation.table, items_pending=pending, performed=False)

    async def publish_metrics(self, consistency_score: float, mismatches_found: int) -> None:
        if self.reporter is None:
            return
        try:
            await self.reporter.publish(METRIC_CONSISTENCY_SCORE, consistency_score, MetricUnit.PERCENT)
            await self.reporter.publish(METRIC_MISMATCHES, float(mismatches_found), MetricUnit.COUNT)
        except Exception as e:
            logger.error(f"Failed to publish metrics: {e}")

    def aggregate(
        self,
        mode: ValidationMode,
        action: ValidationAction,
        validations: Sequence[TableValidationResult],
        replication_lag: Optional[int],
        backup: BackupFreshness,
    ) -> AggregatedValidationReport:
        records_checked = sum(v.primary_count for v in validations)
        mismatches_found = sum(v.mismatch_count for v in validations)
        consistency_score = calculate_consistency_score(records_checked, mismatches_found)

        if consistency_score >= self.settings.CONSISTENCY_THRESHOLD:
            status = ValidationStatus.HEALTHY
        else:
            status = ValidationStatus.DEGRADED

        sync_results = None
        if action == ValidationAction.SYNC:
            sync_results = tuple(self.plan_sync(v) for v in validations if v.mismatch_count > 0)

        recommendations = generate_recommendations(
            consistency_score=consistency_score,
            replication_lag_seconds=replication_lag,
            last_backup_age_hours=backup.last_backup_age_hours,
            oldest_backup_days=backup.oldest_backup_age_days,
            thresholds=self.settings,
        )

        return AggregatedValidationReport(
            status=status,
            mode=mode,
            timestamp=datetime.now(timezone.utc),
            tables_validated=len(validations),
            records_checked=records_checked,
            mismatches_found=mismatches_found,
            replication_lag_seconds=replication_lag,
            backup=backup,
            consistency_score=consistency_score,
            recommendations=tuple(recommendations),
            sync_results=sync_results,
        )

    async def validate(
        self,
        mode: ValidationMode = ValidationMode.INCREMENTAL,
        table_filter: Optional[str] = None,
        action: ValidationAction = ValidationAction.VALIDATE,
    ) -> AggregatedValidationReport:
        tables = self.select_tables(table_filter)
        logger.info(
            f"Starting {mode.value} validation of {len(tables)} tables",
            extra={"region": self.source_region, "action": action.value},
        )

        *table_results, replication_lag, backup = await asyncio.gather(
            *(self._sample_table(table) for table in tables),
            self._measure_lag(),
            self._backup_freshness(),
        )
        validations = [v for v in table_results if v is not None]

        report = self.aggregate(mode, action, validations, replication_lag, backup)

        await self.publish_metrics(report.consistency_score, report.mismatches_found)

        logger.info(
            f"Validation complete: {report.tables_validated} tables, "
            f"{report.records_checked} records, {report.consistency_score:.1f}% consistency"
        )
        for validation in validations:
            if validation.sampled_mismatches:
                logger.warning(
                    f"Table {validation.table} has mismatches: {list(validation.sampled_mismatches)}",
                    extra={"table": validation.table},
                )

        return report
