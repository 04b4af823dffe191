# drplane/schemas/failover.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime

from drplane.core.constants import FailoverAction, FailoverRecordStatus, ResponseStatus


class FailoverRequest(BaseModel):
    # action and target_region stay raw strings; bad values are answered
    # with a "failed" response by the orchestrator
    action: str
    target_region: str
    force: bool = False


class FailoverResponse(BaseModel):
    status: ResponseStatus
    message: str
    action: str
    timestamp: datetime


class FailoverRecordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    action: FailoverAction
    source_region: str
    target_region: str
    status: FailoverRecordStatus
    timestamp: datetime


class FailoverStatusResponse(BaseModel):
    record: Optional[FailoverRecordOut] = None
