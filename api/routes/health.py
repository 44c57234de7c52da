"""
Health Check Endpoints
======================

API health check endpoints for monitoring and container orchestration probes.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Dict, Optional
from enum import Enum

import psutil
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from api.dependencies import get_document_store
from core.document_store import DocumentStoreProtocol


# Set up module logger
logger = logging.getLogger(__name__)

router = APIRouter()


class ServiceStatus(str, Enum):
    """Service health status enumeration."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ServiceCheckResult(BaseModel):
    """Result of an individual service health check."""
    status: ServiceStatus = Field(description="Service health status")
    message: Optional[str] = Field(None, description="Status message or error details")
    latency_ms: Optional[float] = Field(None, description="Check latency in milliseconds")


class SystemMetrics(BaseModel):
    """System resource metrics."""
    cpu_percent: float = Field(description="CPU usage percentage")
    memory_percent: float = Field(description="Memory usage percentage")
    memory_available_mb: float = Field(description="Available memory in MB")
    disk_usage_percent: float = Field(description="Disk usage percentage")


class HealthCheckResponse(BaseModel):
    """Comprehensive health check response."""
    status: ServiceStatus = Field(description="Overall health status")
    timestamp: str = Field(description="ISO 8601 timestamp of the health check")
    services: Dict[str, ServiceCheckResult] = Field(description="Individual service statuses")
    system_metrics: SystemMetrics = Field(description="System resource metrics")


class ProbeResponse(BaseModel):
    """Readiness/liveness probe response."""
    status: str = Field(description="Probe status")
    timestamp: str = Field(description="ISO 8601 timestamp")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


async def check_store(store: DocumentStoreProtocol) -> ServiceCheckResult:
    """
    Check document store connectivity.

    Args:
        store: The configured document store

    Returns:
        ServiceCheckResult with store health status
    """
    start_time = time.time()
    backend = getattr(store, "backend_name", type(store).__name__)

    if not await store.ping():
        return ServiceCheckResult(
            status=ServiceStatus.UNHEALTHY,
            message=f"Store '{backend}' did not answer"
        )

    latency_ms = (time.time() - start_time) * 1000
    return ServiceCheckResult(
        status=ServiceStatus.DEGRADED if backend == "memory" else ServiceStatus.HEALTHY,
        message="In-memory store, data is not persisted" if backend == "memory" else "Connected",
        latency_ms=round(latency_ms, 2)
    )


def get_system_metrics() -> SystemMetrics:
    """
    Gather system resource metrics.

    Returns:
        SystemMetrics with CPU, memory, and disk usage
    """
    try:
        cpu_percent = psutil.cpu_percent(interval=None)
        memory = psutil.virtual_memory()
        disk = psutil.disk_usage('/')

        return SystemMetrics(
            cpu_percent=round(cpu_percent, 2),
            memory_percent=round(memory.percent, 2),
            memory_available_mb=round(memory.available / (1024 * 1024), 2),
            disk_usage_percent=round(disk.percent, 2)
        )
    except (psutil.Error, OSError) as e:
        logger.error(f"Failed to gather system metrics: {e}")
        return SystemMetrics(
            cpu_percent=0.0,
            memory_percent=0.0,
            memory_available_mb=0.0,
            disk_usage_percent=0.0
        )


@router.get(
    "/health",
    response_model=HealthCheckResponse,
    summary="Comprehensive health check"
)
async def health_check(
    store: DocumentStoreProtocol = Depends(get_document_store)
) -> HealthCheckResponse:
    """
    Report store connectivity and system metrics.

    Returns HTTP 200 even when the store is down; use the 'status' field.
    """
    services = {
        "api": ServiceCheckResult(status=ServiceStatus.HEALTHY, message="API is running"),
        "store": await check_store(store),
    }

    if any(s.status == ServiceStatus.UNHEALTHY for s in services.values()):
        overall_status = ServiceStatus.UNHEALTHY
    elif any(s.status == ServiceStatus.DEGRADED for s in services.values()):
        overall_status = ServiceStatus.DEGRADED
    else:
        overall_status = ServiceStatus.HEALTHY

    if overall_status != ServiceStatus.HEALTHY:
        logger.warning(f"Health check: {overall_status.value} ({services['store'].message})")

    return HealthCheckResponse(
        status=overall_status,
        timestamp=_timestamp(),
        services=services,
        system_metrics=get_system_metrics()
    )


@router.get("/health/ready", response_model=ProbeResponse, summary="Readiness probe")
async def readiness_probe(
    store: DocumentStoreProtocol = Depends(get_document_store)
) -> ProbeResponse:
    """
    Ready means the document store answers.

    Raises:
        HTTPException: 503 if not ready
    """
    if not await store.ping():
        logger.warning("Readiness probe failed: store did not answer")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Document store unavailable"
        )
    return ProbeResponse(status="ready", timestamp=_timestamp())


@router.get("/health/live", response_model=ProbeResponse, summary="Liveness probe")
async def liveness_probe() -> ProbeResponse:
    """Confirm the process can respond. Does not check dependencies."""
    return ProbeResponse(status="alive", timestamp=_timestamp())
