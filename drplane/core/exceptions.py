# drplane/core/exceptions.py
from typing import Optional


class DRPlaneError(Exception):
    """Base error for the DR control plane"""


class BackendUnavailable(DRPlaneError):
    """A mandatory storage call could not be completed"""

    def __init__(self, service: str, region: str, resource: Optional[str] = None, reason: str = ""):
        self.service = service
        self.region = region
        self.resource = resource
        self.reason = reason
        target = f"{service}:{resource}" if resource else service
        message = f"{target} unavailable in {region}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class BackupError(DRPlaneError):
    """Backup extraction or metadata write failed"""


class InvalidRegionError(DRPlaneError, ValueError):
    def __init__(self, region):
        self.region = region
        super().__init__(f"Invalid region: {region}")
