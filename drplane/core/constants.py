# drplane/core/constants.py
from enum import Enum


class ValidationMode(str, Enum):
    FULL = "full"
    INCREMENTAL = "incremental"
    SPECIFIC = "specific"


class ValidationAction(str, Enum):
    VALIDATE = "validate"
    SYNC = "sync"


class ValidationStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    FAILED = "failed"  # reserved, never produced by scoring


class FailoverAction(str, Enum):
    FAILOVER = "failover"
    FAILBACK = "failback"


class FailoverRecordStatus(str, Enum):
    COMPLETED = "completed"
    REJECTED = "rejected"


class ResponseStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class RegionHealth(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class MetricUnit(str, Enum):
    """Subset of CloudWatch StandardUnit values"""
    PERCENT = "Percent"
    COUNT = "Count"
    SECONDS = "Seconds"
    NONE = "None"


# Metric names
METRIC_CONSISTENCY_SCORE = "ValidationConsistencyScore"
METRIC_MISMATCHES = "ValidationMismatches"
METRIC_DYNAMODB_HEALTH = "DynamoDBHealth"
METRIC_S3_HEALTH = "S3Health"
METRIC_REPLICATION_LAG = "ReplicationLag"

# Sentinel record
SENTINEL_SOURCE = "validator"
SENTINEL_MARKER_PREFIX = "lag-test"
STANDING_SENTINEL_ID = "sentinel"

ALL_CLEAR_MESSAGE = "All validation checks passed. System is healthy."
