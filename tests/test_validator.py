"""
Tests for the consistency validator

Sampling, lag probing and backup freshness feed one aggregated report.
Lag and backup sources are stubbed where the scenario fixes their values.
"""
import asyncio

import pytest

from drplane.core.constants import (
    ALL_CLEAR_MESSAGE,
    ValidationAction,
    ValidationMode,
    ValidationStatus,
)
from drplane.services.metrics import MetricsReporter
from drplane.services.models import BackupFreshness
from drplane.services.sampler import TableConsistencySampler
from drplane.services.validator import ConsistencyValidator, calculate_consistency_score

from conftest import PRIMARY_REGION, SECONDARY_REGION, make_items, unreachable

APP_TABLE = "dr-application-table"
SENTINEL_TABLE = "dr-sentinel-table"


class StubProber:

    def __init__(self, lag=None, error=None, delay=0.0):
        self.lag = lag
        self.error = error
        self.delay = delay

    async def measure_lag(self, primary, secondary):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.lag


class StubBackupStore:

    def __init__(self, freshness=None, error=None):
        self.freshness = freshness or BackupFreshness()
        self.error = error

    async def get_freshness(self):
        if self.error:
            raise self.error
        return self.freshness


class TestConsistencyScore:

    def test_nothing_checked_is_fully_consistent(self):
        assert calculate_consistency_score(0, 0) == 100.0

    def test_score_is_percentage_of_matching_records(self):
        assert calculate_consistency_score(100, 12) == 88.0
        assert calculate_consistency_score(200, 0) == 100.0

    def test_score_is_clamped_at_zero(self):
        assert calculate_consistency_score(10, 25) == 0.0

    def test_score_decreases_with_mismatches(self):
        scores = [calculate_consistency_score(100, m) for m in range(0, 101, 10)]
        assert scores == sorted(scores, reverse=True)


@pytest.mark.asyncio
class TestConsistencyValidator:

    @pytest.fixture
    def build(self, clients, test_settings):
        def _build(prober=None, backup_store=None, config=None):
            config = config or test_settings
            return ConsistencyValidator(
                sampler=TableConsistencySampler(clients, PRIMARY_REGION, SECONDARY_REGION),
                prober=prober or StubProber(lag=5),
                backup_store=backup_store or StubBackupStore(
                    BackupFreshness(last_backup_age_hours=2.0, backup_count=3, oldest_backup_age_days=3.0)
                ),
                config=config,
                source_region=PRIMARY_REGION,
                target_region=SECONDARY_REGION,
                reporter=MetricsReporter(clients.cloudwatch(PRIMARY_REGION)),
            )
        return _build

    @pytest.fixture
    def in_sync(self, primary_db, secondary_db):
        for table in (APP_TABLE, SENTINEL_TABLE):
            items = make_items(10, prefix=table)
            primary_db.add_items(table, items)
            secondary_db.add_items(table, items)
            primary_db.item_counts[table] = 100
            secondary_db.item_counts[table] = 100

    # ==================== Scenarios ====================

    async def test_healthy_full_validation(self, build, in_sync):
        """
        Test: two tables, 100 items each side, lag 5s, last backup 2h old

        Expected:
        - score 100.0, status healthy
        - single all-clear recommendation
        """
        report = await build().validate(mode=ValidationMode.FULL)

        assert report.mode == ValidationMode.FULL
        assert report.tables_validated == 2
        assert report.records_checked == 200
        assert report.mismatches_found == 0
        assert report.replication_lag_seconds == 5
        assert report.consistency_score == 100.0
        assert report.status == ValidationStatus.HEALTHY
        assert report.recommendations == (ALL_CLEAR_MESSAGE,)
        assert report.sync_results is None

    async def test_degraded_table(self, build, primary_db, secondary_db):
        """
        Test: one table, 100 vs 90 items, two sampled items missing in DR

        Expected:
        - 12 mismatches, score 88.0, status degraded
        - low consistency recommendation
        """
        items = make_items(10)
        primary_db.add_items(APP_TABLE, items)
        secondary_db.add_items(APP_TABLE, items[:8])
        primary_db.item_counts[APP_TABLE] = 100
        secondary_db.item_counts[APP_TABLE] = 90

        report = await build().validate(mode=ValidationMode.SPECIFIC, table_filter=APP_TABLE)

        assert report.tables_validated == 1
        assert report.records_checked == 100
        assert report.mismatches_found == 12
        assert report.consistency_score == 88.0
        assert report.status == ValidationStatus.DEGRADED
        assert report.recommendations == (
            "Data consistency is below 95% (88.0%). Investigate mismatches immediately.",
        )

    async def test_unreachable_table_is_excluded(self, build, primary_db, secondary_db):
        items = make_items(5)
        primary_db.add_items(APP_TABLE, items)
        secondary_db.add_items(APP_TABLE, items)
        # sentinel table exists only in the primary
        primary_db.add_items(SENTINEL_TABLE, make_items(3, prefix="s"))

        report = await build().validate()

        assert report.tables_validated == 1
        assert report.records_checked == 5
        assert report.consistency_score == 100.0

    async def test_all_tables_failing_is_vacuously_healthy(self, build, secondary_db):
        secondary_db.errors["describe_table"] = unreachable(SECONDARY_REGION)

        report = await build().validate()

        assert report.tables_validated == 0
        assert report.records_checked == 0
        assert report.consistency_score == 100.0
        assert report.status == ValidationStatus.HEALTHY

    async def test_lag_failure_reports_absent_lag(self, build, in_sync):
        report = await build(prober=StubProber(error=RuntimeError("boom"))).validate()

        assert report.replication_lag_seconds is None
        assert report.status == ValidationStatus.HEALTHY

    async def test_lag_timeout_reports_absent_lag(self, build, in_sync, test_settings):
        config = test_settings.model_copy(update={"LAG_MAX_ATTEMPTS": 1, "LAG_PROBE_GRACE_SECONDS": 0.05})

        report = await build(prober=StubProber(lag=1, delay=1.0), config=config).validate()

        assert report.replication_lag_seconds is None
        assert report.tables_validated == 2

    async def test_high_lag_recommendation(self, build, in_sync):
        report = await build(prober=StubProber(lag=120)).validate()

        assert report.recommendations == (
            "Replication lag is 120 seconds. Consider investigating DynamoDB Global Tables health.",
        )
        assert report.status == ValidationStatus.HEALTHY

    async def test_backup_failure_reports_unknown_freshness(self, build, in_sync):
        report = await build(backup_store=StubBackupStore(error=RuntimeError("scan failed"))).validate()

        assert report.backup == BackupFreshness()
        assert report.backup.last_backup_age_hours is None
        assert report.recommendations == (ALL_CLEAR_MESSAGE,)

    # ==================== Table selection ====================

    async def test_table_filter_overrides_defaults(self, build, in_sync, primary_db):
        report = await build().validate(table_filter=APP_TABLE)

        assert report.tables_validated == 1
        assert primary_db.count("describe_table", SENTINEL_TABLE) == 0

    async def test_default_tables_come_from_settings(self, build, in_sync, test_settings):
        config = test_settings.model_copy(update={"DEFAULT_TABLES": [APP_TABLE]})

        report = await build(config=config).validate()

        assert report.tables_validated == 1

    # ==================== Sync ====================

    async def test_sync_reports_pending_items_without_copying(self, build, primary_db, secondary_db):
        items = make_items(10)
        primary_db.add_items(APP_TABLE, items)
        secondary_db.add_items(APP_TABLE, items[:8])
        primary_db.item_counts[APP_TABLE] = 100
        secondary_db.item_counts[APP_TABLE] = 90

        report = await build().validate(table_filter=APP_TABLE, action=ValidationAction.SYNC)

        assert len(report.sync_results) == 1
        sync = report.sync_results[0]
        assert sync.table == APP_TABLE
        assert sync.items_pending == 10
        assert sync.performed is False
        assert len(secondary_db.tables[APP_TABLE]) == 8
        assert secondary_db.count("put_item") == 0

    async def test_sync_with_no_mismatches_is_empty(self, build, in_sync):
        report = await build().validate(action=ValidationAction.SYNC)

        assert report.sync_results == ()

    # ==================== Metrics ====================

    async def test_publishes_score_and_mismatches(self, build, in_sync, clients):
        await build().validate()

        cloudwatch = clients.cloudwatch(PRIMARY_REGION)
        assert cloudwatch.names() == ["ValidationConsistencyScore", "ValidationMismatches"]
        namespace, score = cloudwatch.data[0]
        assert namespace == "DisasterRecovery"
        assert score["Value"] == 100.0
        assert score["Unit"] == "Percent"
        assert cloudwatch.data[1][1]["Unit"] == "Count"

    async def test_metric_failure_does_not_fail_validation(self, build, in_sync, clients):
        clients.cloudwatch(PRIMARY_REGION).rejected.add("ValidationConsistencyScore")

        report = await build().validate()

        assert report.status == ValidationStatus.HEALTHY
        assert clients.cloudwatch(PRIMARY_REGION).names() == ["ValidationMismatches"]
