# drplane/schemas/backup.py
from pydantic import BaseModel, field_validator
from datetime import datetime

from drplane.core.input_validation import TableName


class BackupRequest(BaseModel):
    table_name: str
    backup_type: str = "full"

    @field_validator("table_name")
    @classmethod
    def check_table_name(cls, v):
        return TableName(v)

    @field_validator("backup_type")
    @classmethod
    def check_backup_type(cls, v):
        if v not in ("full", "incremental"):
            raise ValueError("backup_type must be 'full' or 'incremental'")
        return v


class BackupResponse(BaseModel):
    status: str
    backup_id: str
    timestamp: datetime
    items_backed_up: int
