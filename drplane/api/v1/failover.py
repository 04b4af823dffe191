"""
Failover API Endpoints

- POST /api/v1/failover - switch to (failover) or back to (failback) a region
- GET /api/v1/failover/status - latest recorded failover decision
"""
from fastapi import APIRouter, Depends, HTTPException, status

from drplane.api.dependencies import get_orchestrator, require_operator
from drplane.schemas.failover import (
    FailoverRecordOut,
    FailoverRequest,
    FailoverResponse,
    FailoverStatusResponse,
)
from drplane.services.disaster_recovery import FailoverOrchestrator

router = APIRouter(prefix="/failover", tags=["failover"])


@router.post("", response_model=FailoverResponse, dependencies=[Depends(require_operator)])
async def execute_failover(
    request: FailoverRequest,
    orchestrator: FailoverOrchestrator = Depends(get_orchestrator),
) -> FailoverResponse:
    """
    Health-gated region switch.

    Request:
    ```json
    {"action": "failover", "target_region": "us-west-2", "force": false}
    ```

    A rejected request (invalid action, invalid region, unhealthy target)
    still answers 200 with `"status": "failed"` and leaves the stored
    record untouched.
    """
    return await orchestrator.handle(request)


@router.get("/status", response_model=FailoverStatusResponse)
async def get_failover_status(
    orchestrator: FailoverOrchestrator = Depends(get_orchestrator),
) -> FailoverStatusResponse:
    record = await orchestrator.current_status()
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No failover has been recorded")
    return FailoverStatusResponse(record=FailoverRecordOut.model_validate(record))
