from fastapi import APIRouter
from drplane.api.v1 import validation, failover, backup, health

api_router = APIRouter()

api_router.include_router(validation.router)
api_router.include_router(failover.router)
api_router.include_router(backup.router)
api_router.include_router(health.router)
