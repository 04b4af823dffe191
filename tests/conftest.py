"""
Pytest configuration and fixtures
Shared test setup for all test modules

AWS is replaced by small in-memory fakes that speak the low-level boto3
request/response shapes used by the services.
"""

import pytest
from fastapi.testclient import TestClient
from botocore.exceptions import ClientError, EndpointConnectionError

from drplane.main import app
from drplane.api.dependencies import get_client_factory, get_settings
from drplane.core.config import Settings


PRIMARY_REGION = "us-east-1"
SECONDARY_REGION = "us-west-2"


def client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised by fake"}}, operation)


def unreachable(region: str) -> EndpointConnectionError:
    return EndpointConnectionError(endpoint_url=f"https://dynamodb.{region}.amazonaws.com")


def make_items(count: int, prefix: str = "item"):
    return [
        {"id": {"S": f"{prefix}-{i}"}, "value": {"N": str(i)}, "name": {"S": f"name {i}"}}
        for i in range(count)
    ]


class FakeDynamoDB:
    """In-memory stand-in for a regional DynamoDB client"""

    KEY_ATTRIBUTES = {"dr-backup-metadata": "backup_id"}

    def __init__(self, region: str):
        self.region = region
        self.tables = {}
        self.item_counts = {}
        self.errors = {}
        self.calls = []
        self.page_size = None
        # Replication to another fake: items written here show up there
        # after `replica_delay` reads of the same key
        self.replica = None
        self.replica_delay = 0
        self._pending = {}

    def _key_attribute(self, table):
        return self.KEY_ATTRIBUTES.get(table, "id")

    def _key(self, table, key):
        attr = self._key_attribute(table)
        value = key[attr]
        return value.get("S", value.get("N"))

    def _maybe_fail(self, operation, table=None):
        self.calls.append((operation, table))
        error = self.errors.get((operation, table)) or self.errors.get(operation)
        if error is not None:
            raise error

    def add_items(self, table, items):
        rows = self.tables.setdefault(table, {})
        for item in items:
            rows[self._key(table, item)] = dict(item)

    def list_tables(self, Limit=None):
        self._maybe_fail("list_tables")
        names = sorted(self.tables)
        return {"TableNames": names[:Limit] if Limit else names}

    def describe_table(self, TableName):
        self._maybe_fail("describe_table", TableName)
        if TableName not in self.tables and TableName not in self.item_counts:
            raise client_error("ResourceNotFoundException", "DescribeTable")
        count = self.item_counts.get(TableName, len(self.tables.get(TableName, {})))
        return {"Table": {"TableName": TableName, "ItemCount": count}}

    def scan(self, TableName, Limit=None, ExclusiveStartKey=None):
        self._maybe_fail("scan", TableName)
        rows = list(self.tables.get(TableName, {}).items())

        start = 0
        if ExclusiveStartKey:
            keys = [k for k, _ in rows]
            start = keys.index(self._key(TableName, ExclusiveStartKey)) + 1

        size = Limit or self.page_size or len(rows)
        page = rows[start:start + size]
        response = {"Items": [dict(item) for _, item in page], "Count": len(page)}

        if self.page_size and start + size < len(rows):
            attr = self._key_attribute(TableName)
            response["LastEvaluatedKey"] = {attr: page[-1][1][attr]}
        return response

    def get_item(self, TableName, Key, ConsistentRead=False):
        self._maybe_fail("get_item", TableName)
        key = self._key(TableName, Key)

        pending = self._pending.get((TableName, key))
        if pending is not None:
            if pending[1] > 0:
                pending[1] -= 1
                return {}
            del self._pending[(TableName, key)]
            self.tables.setdefault(TableName, {})[key] = pending[0]

        item = self.tables.get(TableName, {}).get(key)
        return {"Item": dict(item)} if item else {}

    def put_item(self, TableName, Item):
        self._maybe_fail("put_item", TableName)
        key = self._key(TableName, Item)
        self.tables.setdefault(TableName, {})[key] = dict(Item)
        if self.replica is not None:
            self.replica._pending[(TableName, key)] = [dict(Item), self.replica_delay]
        return {}

    def delete_item(self, TableName, Key):
        self._maybe_fail("delete_item", TableName)
        self.tables.get(TableName, {}).pop(self._key(TableName, Key), None)
        return {}

    def count(self, operation, table=None):
        return sum(1 for op, t in self.calls if op == operation and (table is None or t == table))


class FakeS3:

    def __init__(self, region: str):
        self.region = region
        self.objects = {}
        self.errors = {}

    def list_objects_v2(self, Bucket, MaxKeys=1000):
        if "list_objects_v2" in self.errors:
            raise self.errors["list_objects_v2"]
        keys = [key for bucket, key in self.objects if bucket == Bucket]
        return {"KeyCount": min(len(keys), MaxKeys), "Contents": [{"Key": k} for k in keys[:MaxKeys]]}

    def put_object(self, Bucket, Key, Body, **kwargs):
        if "put_object" in self.errors:
            raise self.errors["put_object"]
        self.objects[(Bucket, Key)] = {"Body": Body, **kwargs}
        return {"ETag": '"fake"'}


class FakeCloudWatch:

    def __init__(self, region: str):
        self.region = region
        self.data = []
        self.rejected = set()

    def put_metric_data(self, Namespace, MetricData):
        for datum in MetricData:
            if datum["MetricName"] in self.rejected:
                raise client_error("InvalidParameterValue", "PutMetricData")
        self.data.extend((Namespace, datum) for datum in MetricData)
        return {}

    def names(self):
        return [datum["MetricName"] for _, datum in self.data]


class FakeClientFactory:
    """Drop-in for AwsClientFactory handing out one fake per (service, region)"""

    FAKES = {"dynamodb": FakeDynamoDB, "s3": FakeS3, "cloudwatch": FakeCloudWatch}

    def __init__(self):
        self._clients = {}

    def client(self, service, region):
        key = (service, str(region))
        if key not in self._clients:
            self._clients[key] = self.FAKES[service](str(region))
        return self._clients[key]

    def dynamodb(self, region):
        return self.client("dynamodb", region)

    def s3(self, region):
        return self.client("s3", region)

    def cloudwatch(self, region):
        return self.client("cloudwatch", region)


@pytest.fixture
def test_settings() -> Settings:
    """Settings tuned so probes and polls never sleep"""
    return Settings(
        ENVIRONMENT="test",
        AWS_REGION=PRIMARY_REGION,
        DEFAULT_SOURCE_REGION=PRIMARY_REGION,
        DEFAULT_TARGET_REGION=SECONDARY_REGION,
        DEFAULT_TABLES=["dr-application-table", "dr-sentinel-table"],
        LAG_POLL_INTERVAL_SECONDS=0.0,
        LAG_MAX_ATTEMPTS=3,
        LAG_PROBE_GRACE_SECONDS=2.0,
        HEALTH_PROBE_TIMEOUT_SECONDS=2.0,
        SAMPLER_TIMEOUT_SECONDS=2.0,
        BACKUP_METADATA_TIMEOUT_SECONDS=2.0,
        BACKUP_BUCKET="test-backup-bucket",
        OPERATOR_TOKEN=None,
        RECORD_REJECTED_FAILOVERS=False,
    )


@pytest.fixture
def clients() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def primary_db(clients) -> FakeDynamoDB:
    return clients.dynamodb(PRIMARY_REGION)


@pytest.fixture
def secondary_db(clients) -> FakeDynamoDB:
    return clients.dynamodb(SECONDARY_REGION)


@pytest.fixture
def client(clients, test_settings) -> TestClient:
    """Create test client with AWS and settings overrides"""
    app.dependency_overrides[get_client_factory] = lambda: clients
    app.dependency_overrides[get_settings] = lambda: test_settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
