# drplane/schemas/health.py
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from drplane.core.constants import RegionHealth
from drplane.services.models import HealthSnapshot


class ServiceStatus(BaseModel):
    dynamodb: bool
    s3: bool
    replication_lag: Optional[int] = None


class HealthCheckRequest(BaseModel):
    region: Optional[str] = None


class HealthCheckResponse(BaseModel):
    status: RegionHealth
    region: str
    timestamp: datetime
    services: ServiceStatus

    @classmethod
    def from_snapshot(cls, snapshot: HealthSnapshot, timestamp: datetime) -> "HealthCheckResponse":
        return cls(
            status=RegionHealth.HEALTHY if snapshot.healthy else RegionHealth.UNHEALTHY,
            region=snapshot.region,
            timestamp=timestamp,
            services=ServiceStatus(
                dynamodb=snapshot.dynamodb,
                s3=snapshot.s3,
                replication_lag=snapshot.replication_lag,
            ),
        )
