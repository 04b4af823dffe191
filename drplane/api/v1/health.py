"""
Region Health API Endpoints

- GET /api/v1/regions/{region}/health - storage, blob store and lag for one region
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from drplane.api.dependencies import build_health_service, get_client_factory, get_settings
from drplane.core.aws import AwsClientFactory
from drplane.core.config import Settings
from drplane.core.input_validation import InputValidator
from drplane.schemas.health import HealthCheckResponse

router = APIRouter(prefix="/regions", tags=["health"])


@router.get("/{region}/health", response_model=HealthCheckResponse)
async def get_region_health(
    region: str,
    clients: AwsClientFactory = Depends(get_client_factory),
    config: Settings = Depends(get_settings),
) -> HealthCheckResponse:
    if not InputValidator.validate_region(region):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Invalid region: {region}")

    service = build_health_service(clients, config, region)
    snapshot = await service.run_health_check(region)
    return HealthCheckResponse.from_snapshot(snapshot, datetime.now(timezone.utc))
