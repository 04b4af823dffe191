"""
Tests for sentinel-based replication lag measurement
"""
import pytest

from drplane.core.constants import SENTINEL_SOURCE
from drplane.services.replication import ReplicationLagProber, new_marker_id

from conftest import PRIMARY_REGION, SECONDARY_REGION, client_error

SENTINEL = "dr-sentinel-table"


class TestMarkerId:

    def test_marker_id_format(self):
        marker = new_marker_id()
        prefix, millis = marker.rsplit("-", 1)
        assert prefix == "lag-test"
        assert millis.isdigit()


@pytest.mark.asyncio
class TestReplicationLagProber:

    @pytest.fixture
    def prober(self, clients):
        return ReplicationLagProber(clients, sentinel_table=SENTINEL, poll_interval=0.0, max_attempts=5)

    async def test_marker_visible_returns_lag(self, prober, primary_db, secondary_db):
        primary_db.replica = secondary_db
        primary_db.replica_delay = 2

        lag = await prober.measure_lag(PRIMARY_REGION, SECONDARY_REGION)

        assert lag == 0
        assert secondary_db.count("get_item", SENTINEL) == 3

    async def test_marker_item_shape(self, prober, primary_db, secondary_db):
        primary_db.replica = secondary_db

        await prober.measure_lag(PRIMARY_REGION, SECONDARY_REGION)

        replicated = list(secondary_db.tables[SENTINEL].values())
        assert len(replicated) == 1
        marker = replicated[0]
        assert marker["id"]["S"].startswith("lag-test-")
        assert marker["source"] == {"S": SENTINEL_SOURCE}
        assert int(marker["timestamp"]["N"]) > 0

    async def test_marker_is_removed_from_primary(self, prober, primary_db, secondary_db):
        primary_db.replica = secondary_db

        await prober.measure_lag(PRIMARY_REGION, SECONDARY_REGION)

        assert primary_db.tables[SENTINEL] == {}
        assert primary_db.count("delete_item", SENTINEL) == 1

    async def test_never_visible_returns_none(self, prober, primary_db, secondary_db):
        lag = await prober.measure_lag(PRIMARY_REGION, SECONDARY_REGION)

        assert lag is None
        assert secondary_db.count("get_item", SENTINEL) == 5
        assert primary_db.tables[SENTINEL] == {}

    async def test_poll_errors_are_retried(self, prober, primary_db, secondary_db):
        secondary_db.errors[("get_item", SENTINEL)] = client_error("InternalServerError", "GetItem")

        lag = await prober.measure_lag(PRIMARY_REGION, SECONDARY_REGION)

        assert lag is None
        assert secondary_db.count("get_item", SENTINEL) == 5

    async def test_write_failure_returns_none(self, prober, primary_db, secondary_db):
        primary_db.errors[("put_item", SENTINEL)] = client_error("AccessDeniedException", "PutItem")

        lag = await prober.measure_lag(PRIMARY_REGION, SECONDARY_REGION)

        assert lag is None
        assert secondary_db.count("get_item", SENTINEL) == 0
        assert primary_db.count("delete_item", SENTINEL) == 0

    async def test_cleanup_failure_does_not_change_result(self, prober, primary_db, secondary_db):
        primary_db.replica = secondary_db
        primary_db.errors[("delete_item", SENTINEL)] = client_error("InternalServerError", "DeleteItem")

        lag = await prober.measure_lag(PRIMARY_REGION, SECONDARY_REGION)

        assert lag == 0
