# drplane/services/disaster_recovery.py
"""
Disaster Recovery failover orchestration

Each request is a one-shot decision: validate the request, gate on the target
region's health unless forced, then record the switch. No "current active
region" is tracked here; DNS cutover, resource promotion and scaling are
handled outside this service.

The health check and the record write are not transactional. Concurrent
requests race and the last write wins.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from drplane.core.constants import FailoverAction, FailoverRecordStatus, ResponseStatus
from drplane.core.exceptions import InvalidRegionError
from drplane.core.input_validation import InputValidator, Region
from drplane.schemas.failover import FailoverRequest, FailoverResponse
from drplane.services.failover_store import FailoverRecordStore
from drplane.services.models import FailoverRecord
from drplane.services.region_health import RegionHealthProbe

logger = logging.getLogger(__name__)


class FailoverOrchestrator:
    """Health-gated failover / failback state machine"""

    def __init__(
        self,
        probe: RegionHealthProbe,
        store: FailoverRecordStore,
        current_region: str,
        record_rejected: bool = False,
    ):
        self.probe = probe
        self.store = store
        self.current_region = current_region
        self.record_rejected = record_rejected

    @staticmethod
    def _response(status: ResponseStatus, message: str, action: str) -> FailoverResponse:
        return FailoverResponse(
            status=status,
            message=message,
            action=action,
            timestamp=datetime.now(timezone.utc),
        )

    def _record(self, action: FailoverAction, target_region: str, status: FailoverRecordStatus) -> FailoverRecord:
        return FailoverRecord(
            action=action,
            source_region=self.current_region,
            target_region=target_region,
            status=status,
            timestamp=datetime.now(timezone.utc),
        )

    async def handle(self, request: FailoverRequest) -> FailoverResponse:
        if not InputValidator.validate_action(request.action):
            logger.error(f"Invalid action: {request.action}")
            return self._response(ResponseStatus.FAILED, f"Invalid action: {request.action}", request.action)

        action = FailoverAction(request.action)

        try:
            target_region = Region(request.target_region)
        except InvalidRegionError as e:
            logger.error(str(e), extra={"action": action.value})
            return self._response(ResponseStatus.FAILED, str(e), action.value)

        return await self.execute(action, target_region, request.force)

    async def execute(self, action: FailoverAction, target_region: str, force: bool) -> FailoverResponse:
        """Failover and failback share this path; only the action tag differs"""
        verb = action.value.capitalize()
        logger.info(f"Executing {action.value} to region: {target_region}", extra={"action": action.value, "region": target_region})

        if not force:
            healthy = await self.probe.probe(target_region)

            if not healthy:
                logger.warning(
                    f"Target region {target_region} is not healthy. Use force=true to override.",
                    extra={"action": action.value, "region": target_region},
                )
                if self.record_rejected:
                    await self._write(self._record(action, target_region, FailoverRecordStatus.REJECTED))
                return self._response(
                    ResponseStatus.FAILED,
                    f"Target region {target_region} is not healthy. Use force=true to override.",
                    action.value,
                )
        else:
            logger.warning(
                f"Health check skipped for {action.value} to {target_region} (force=true)",
                extra={"action": action.value, "region": target_region},
            )

        record = self._record(action, target_region, FailoverRecordStatus.COMPLETED)
        if not await self._write(record):
            return self._response(
                ResponseStatus.FAILED,
                f"Failed to record {action.value} to region {target_region}",
                action.value,
            )

        logger.critical(f"{verb} to region {target_region} completed", extra={"action": action.value, "region": target_region})
        return self._response(ResponseStatus.SUCCESS, f"{verb} to region {target_region} completed", action.value)

    async def _write(self, record: FailoverRecord) -> bool:
        try:
            await self.store.put(record)
            return True
        except Exception:
            logger.exception(
                "Failed to write failover record",
                extra={"action": record.action.value, "region": record.target_region},
            )
            return False

    async def current_status(self) -> Optional[FailoverRecord]:
        return await self.store.get_current()
