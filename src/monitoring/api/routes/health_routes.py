"""
Health Routes

``/api/v1/health`` is a cheap liveness answer; ``/detailed`` touches the
database and the cache.
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from src.dependencies import get_health_service
from src.monitoring.api.schemas import DetailedHealthResponse, HealthResponse
from src.monitoring.application.services.health_service import HealthService

router = APIRouter(prefix="/api/v1/health", tags=["Health"])

Service = Annotated[HealthService, Depends(get_health_service)]


@router.get("", response_model=HealthResponse, summary="Basic health")
async def health(service: Service):
    return service.basic()


@router.get("/detailed", response_model=DetailedHealthResponse, summary="Database and cache health")
async def health_detailed(service: Service):
    return await service.detailed()


@router.get("/ready", summary="Readiness probe")
async def ready():
    return {"ready": True}


@router.get("/alive", summary="Liveness probe")
async def alive():
    return {"alive": True}
