# drplane/core/aws.py
"""
Per-region AWS client construction

Clients are created lazily, cached per (service, region) and handed to the
services that need them. boto3 clients are thread-safe once created; creation
itself is guarded by a lock.
"""

import asyncio
import functools
import logging
import threading
from typing import Any, Callable, Dict, Optional, Tuple

import boto3
from botocore.config import Config

from drplane.core.config import Settings

logger = logging.getLogger(__name__)


async def call_blocking(func: Callable[..., Any], *args, **kwargs) -> Any:
    """Run a blocking SDK call in the default threadpool"""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


class AwsClientFactory:
    """Builds boto3 clients with bounded timeouts for any region"""

    def __init__(self, config: Settings, session: Optional[boto3.session.Session] = None):
        self.settings = config
        self.session = session or boto3.session.Session()
        self._clients: Dict[Tuple[str, str], Any] = {}
        self._lock = threading.Lock()

    def _client_config(self) -> Config:
        return Config(
            connect_timeout=self.settings.AWS_CONNECT_TIMEOUT_SECONDS,
            read_timeout=self.settings.AWS_READ_TIMEOUT_SECONDS,
            retries={"max_attempts": self.settings.AWS_MAX_ATTEMPTS, "mode": "standard"},
        )

    def client(self, service: str, region: str):
        key = (service, str(region))
        with self._lock:
            if key not in self._clients:
                logger.debug("Creating %s client", service, extra={"region": str(region)})
                self._clients[key] = self.session.client(
                    service,
                    region_name=str(region),
                    endpoint_url=self.settings.AWS_ENDPOINT_URL,
                    config=self._client_config(),
                )
            return self._clients[key]

    def dynamodb(self, region: str):
        return self.client("dynamodb", region)

    def s3(self, region: str):
        return self.client("s3", region)

    def cloudwatch(self, region: str):
        return self.client("cloudwatch", region)
