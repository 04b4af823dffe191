# drplane/core/config.py
import json
from typing import Annotated, List, Optional
from pathlib import Path
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from pydantic import field_validator

from drplane.core.input_validation import InputValidator

# Locate the .env file relative to the project root
BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(ENV_FILE), extra="ignore")

    # Application
    PROJECT_NAME: str = "DR Plane"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Regions
    AWS_REGION: str = "us-east-1"  # region this control plane runs in
    DEFAULT_SOURCE_REGION: str = "us-east-1"
    DEFAULT_TARGET_REGION: str = "us-west-2"
    AWS_ENDPOINT_URL: Optional[str] = None

    # AWS client behaviour
    AWS_CONNECT_TIMEOUT_SECONDS: float = 2.0
    AWS_READ_TIMEOUT_SECONDS: float = 5.0
    AWS_MAX_ATTEMPTS: int = 2

    # Tables and storage
    DEFAULT_TABLES: Annotated[List[str], NoDecode] = ["dr-application-table", "dr-sentinel-table"]
    SENTINEL_TABLE: str = "dr-sentinel-table"
    METADATA_TABLE: str = "dr-backup-metadata"
    FAILOVER_RECORD_ID: str = "failover_status"
    BACKUP_BUCKET: Optional[str] = None

    # Metrics
    METRICS_NAMESPACE: str = "DisasterRecovery"

    # Sampling
    SAMPLE_SIZE: int = 10
    SAMPLE_KEY_ATTRIBUTE: str = "id"

    # Replication lag probe
    LAG_POLL_INTERVAL_SECONDS: float = 1.0
    LAG_MAX_ATTEMPTS: int = 10
    LAG_PROBE_GRACE_SECONDS: float = 5.0

    # Sub-operation timeouts
    HEALTH_PROBE_TIMEOUT_SECONDS: float = 5.0
    SAMPLER_TIMEOUT_SECONDS: float = 30.0
    BACKUP_METADATA_TIMEOUT_SECONDS: float = 10.0

    # Recommendation thresholds
    CONSISTENCY_THRESHOLD: float = 95.0
    REPLICATION_LAG_THRESHOLD_SECONDS: int = 60
    BACKUP_AGE_THRESHOLD_HOURS: float = 24.0
    BACKUP_RETENTION_THRESHOLD_DAYS: float = 30.0

    # Failover policy
    RECORD_REJECTED_FAILOVERS: bool = False

    # Operator auth for mutating endpoints (disabled when unset)
    OPERATOR_TOKEN: Optional[str] = None

    @field_validator("AWS_REGION", "DEFAULT_SOURCE_REGION", "DEFAULT_TARGET_REGION")
    @classmethod
    def check_region(cls, v):
        if not InputValidator.validate_region(v):
            raise ValueError(f"Invalid region: {v}")
        return v

    @field_validator("DEFAULT_TABLES", mode="before")
    @classmethod
    def assemble_tables(cls, v):
        # Accept a JSON list or a comma-separated string
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [i.strip() for i in v.split(",") if i.strip()]
        return v

    @property
    def lag_probe_timeout(self) -> float:
        """Upper bound for one replication lag measurement"""
        return self.LAG_POLL_INTERVAL_SECONDS * self.LAG_MAX_ATTEMPTS + self.LAG_PROBE_GRACE_SECONDS

    def backup_bucket_for(self, region: str) -> str:
        return self.BACKUP_BUCKET or f"dr-demo-backup-bucket-{region}"


settings = Settings()
