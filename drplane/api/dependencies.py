# drplane/api/dependencies.py
"""
Service construction for the transports

Every service receives its AWS clients from the AwsClientFactory held on
application state; nothing talks to a module-level client.
"""

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from drplane.core.aws import AwsClientFactory
from drplane.core.config import Settings, settings
from drplane.services.backup import BackupMetadataStore, BackupService
from drplane.services.disaster_recovery import FailoverOrchestrator
from drplane.services.failover_store import FailoverRecordStore
from drplane.services.metrics import MetricsReporter
from drplane.services.region_health import RegionHealthProbe, RegionHealthService
from drplane.services.replication import ReplicationLagProber
from drplane.services.sampler import TableConsistencySampler
from drplane.services.validator import ConsistencyValidator

security = HTTPBearer(auto_error=False)


def get_settings() -> Settings:
    return settings


def get_client_factory(request: Request) -> AwsClientFactory:
    factory = getattr(request.app.state, "clients", None)
    if factory is None:
        factory = AwsClientFactory(get_settings())
        request.app.state.clients = factory
    return factory


def build_validator(
    clients: AwsClientFactory,
    config: Settings,
    source_region: str,
    target_region: str,
) -> ConsistencyValidator:
    return ConsistencyValidator(
        sampler=TableConsistencySampler(
            clients,
            source_region,
            target_region,
            sample_size=config.SAMPLE_SIZE,
            key_attribute=config.SAMPLE_KEY_ATTRIBUTE,
        ),
        prober=ReplicationLagProber(
            clients,
            sentinel_table=config.SENTINEL_TABLE,
            poll_interval=config.LAG_POLL_INTERVAL_SECONDS,
            max_attempts=config.LAG_MAX_ATTEMPTS,
        ),
        backup_store=BackupMetadataStore(
            clients.dynamodb(source_region),
            table_name=config.METADATA_TABLE,
            exclude_ids=[config.FAILOVER_RECORD_ID],
        ),
        config=config,
        source_region=source_region,
        target_region=target_region,
        reporter=MetricsReporter(clients.cloudwatch(source_region), namespace=config.METRICS_NAMESPACE),
    )


def build_orchestrator(clients: AwsClientFactory, config: Settings) -> FailoverOrchestrator:
    return FailoverOrchestrator(
        probe=RegionHealthProbe(clients, timeout=config.HEALTH_PROBE_TIMEOUT_SECONDS),
        store=FailoverRecordStore(
            clients.dynamodb(config.AWS_REGION),
            table_name=config.METADATA_TABLE,
            record_id=config.FAILOVER_RECORD_ID,
        ),
        current_region=config.AWS_REGION,
        record_rejected=config.RECORD_REJECTED_FAILOVERS,
    )


def build_backup_service(clients: AwsClientFactory, config: Settings) -> BackupService:
    return BackupService(
        clients.dynamodb(config.AWS_REGION),
        clients.s3(config.AWS_REGION),
        backup_bucket=config.backup_bucket_for(config.AWS_REGION),
        metadata_table=config.METADATA_TABLE,
    )


def build_health_service(clients: AwsClientFactory, config: Settings, region: str) -> RegionHealthService:
    return RegionHealthService(
        clients,
        config,
        reporter=MetricsReporter(clients.cloudwatch(region), namespace=config.METRICS_NAMESPACE),
    )


def get_orchestrator(
    clients: AwsClientFactory = Depends(get_client_factory),
    config: Settings = Depends(get_settings),
) -> FailoverOrchestrator:
    return build_orchestrator(clients, config)


def get_backup_service(
    clients: AwsClientFactory = Depends(get_client_factory),
    config: Settings = Depends(get_settings),
) -> BackupService:
    return build_backup_service(clients, config)


async def require_operator(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    config: Settings = Depends(get_settings),
) -> None:
    """Bearer token check for state-changing endpoints, skipped when no token is configured"""
    if not config.OPERATOR_TOKEN:
        return

    if not credentials or not secrets.compare_digest(credentials.credentials, config.OPERATOR_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Operator authentication required",
        )
