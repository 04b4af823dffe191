# drplane/handlers.py
"""
Lambda-style entry points

Each handler takes the JSON request as a dict and returns the JSON response
as a dict, so the same contract is served with or without the HTTP API.
Malformed events are answered with a structured "failed" body instead of
raising.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError

from drplane.api.dependencies import (
    build_backup_service,
    build_health_service,
    build_orchestrator,
    build_validator,
)
from drplane.core.aws import AwsClientFactory
from drplane.core.config import Settings, settings
from drplane.core.exceptions import BackupError
from drplane.core.input_validation import InputValidator
from drplane.core.logging import logger
from drplane.schemas.backup import BackupRequest, BackupResponse
from drplane.schemas.failover import FailoverRequest
from drplane.schemas.health import HealthCheckRequest, HealthCheckResponse
from drplane.schemas.validation import ValidationRequest, ValidationResponse

_clients: Optional[AwsClientFactory] = None


def _client_factory() -> AwsClientFactory:
    # Reused across warm invocations
    global _clients
    if _clients is None:
        _clients = AwsClientFactory(settings)
    return _clients


def _failed(message: str, **extra) -> Dict[str, Any]:
    body = {"status": "failed", "message": message}
    body.update(extra)
    return body


def _errors(exc: ValidationError):
    return [{"loc": [str(p) for p in e["loc"]], "msg": e["msg"]} for e in exc.errors()]


async def handle_validation_event(event: Dict[str, Any], clients: AwsClientFactory, config: Settings) -> Dict[str, Any]:
    try:
        request = ValidationRequest.model_validate(event or {})
    except ValidationError as e:
        return _failed("Invalid request", errors=_errors(e))

    source_region, target_region = request.resolve_regions(config)
    validator = build_validator(clients, config, source_region, target_region)
    report = await validator.validate(
        mode=request.validation_mode,
        table_filter=request.table_name,
        action=request.action,
    )
    return ValidationResponse.from_report(report).model_dump(mode="json")


async def handle_failover_event(event: Dict[str, Any], clients: AwsClientFactory, config: Settings) -> Dict[str, Any]:
    try:
        request = FailoverRequest.model_validate(event or {})
    except ValidationError as e:
        return _failed(
            "Invalid request",
            action=str((event or {}).get("action", "")),
            timestamp=datetime.now(timezone.utc).isoformat(),
            errors=_errors(e),
        )

    response = await build_orchestrator(clients, config).handle(request)
    return response.model_dump(mode="json")


async def handle_backup_event(event: Dict[str, Any], clients: AwsClientFactory, config: Settings) -> Dict[str, Any]:
    try:
        request = BackupRequest.model_validate(event or {})
    except ValidationError as e:
        return _failed("Invalid request", errors=_errors(e))

    try:
        result = await build_backup_service(clients, config).run_backup(request.table_name, request.backup_type)
    except BackupError as e:
        return _failed(str(e))
    return BackupResponse(**result).model_dump(mode="json")


async def handle_health_check_event(event: Dict[str, Any], clients: AwsClientFactory, config: Settings) -> Dict[str, Any]:
    try:
        request = HealthCheckRequest.model_validate(event or {})
    except ValidationError as e:
        return _failed("Invalid request", errors=_errors(e))

    region = request.region or config.AWS_REGION
    if not InputValidator.validate_region(region):
        return _failed(f"Invalid region: {region}")

    snapshot = await build_health_service(clients, config, region).run_health_check(region)
    return HealthCheckResponse.from_snapshot(snapshot, datetime.now(timezone.utc)).model_dump(mode="json")


def _run(handler, event):
    try:
        return asyncio.run(handler(event, _client_factory(), settings))
    except Exception:
        logger.exception("Unhandled exception in handler")
        return _failed("Internal server error")


def validation_handler(event, context=None):
    return _run(handle_validation_event, event)


def failover_handler(event, context=None):
    return _run(handle_failover_event, event)


def backup_handler(event, context=None):
    return _run(handle_backup_event, event)


def health_check_handler(event, context=None):
    return _run(handle_health_check_event, event)
