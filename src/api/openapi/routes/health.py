"""Health, liveness and readiness probes over the three storage backends."""

import asyncio
from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from src.api.dependencies import FactoryDep, SettingsDep
from src.commons.infrastructure.blob.base import HealthStatus as ProbeResult
from src.infrastructure.factory import InfrastructureFactory

router = APIRouter()

# Two or more failing backends take the whole service down
UNHEALTHY_THRESHOLD = 2


class ComponentStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Probe outcome for one backend."""

    name: str = Field(description="Backend name")
    status: ComponentStatus = Field(description="Backend status")
    latency_ms: float | None = Field(default=None, description="Probe latency")
    message: str | None = Field(default=None, description="Probe message or error")

    @classmethod
    def from_probe(cls, name: str, result: ProbeResult | BaseException) -> "ComponentHealth":
        if isinstance(result, BaseException):
            return cls(name=name, status=ComponentStatus.UNHEALTHY, message=str(result))
        return cls(
            name=name,
            status=ComponentStatus.HEALTHY if result.healthy else ComponentStatus.UNHEALTHY,
            latency_ms=round(result.latency_ms, 2),
            message=result.message,
        )


class HealthResponse(BaseModel):
    status: ComponentStatus = Field(description="Overall status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    components: list[ComponentHealth] = Field(default_factory=list)


class LivenessResponse(BaseModel):
    status: str = Field(default="ok")


class ReadinessResponse(BaseModel):
    ready: bool = Field(description="True when every backend answered")
    checks: dict[str, bool] = Field(default_factory=dict)


async def probe_backends(factory: InfrastructureFactory) -> list[ComponentHealth]:
    """Probe blob, vector and document stores concurrently.

    A probe that raises is reported as unhealthy rather than failing the
    request.
    """
    backends = {
        "blob_storage": factory.get_blob_storage(),
        "vector_db": factory.get_vector_db(),
        "document_db": factory.get_document_db(),
    }
    results = await asyncio.gather(
        *(backend.health_check() for backend in backends.values()),
        return_exceptions=True,
    )
    return [
        ComponentHealth.from_probe(name, result)
        for name, result in zip(backends, results, strict=True)
    ]


def overall_status(components: list[ComponentHealth]) -> ComponentStatus:
    failing = sum(c.status is ComponentStatus.UNHEALTHY for c in components)
    if failing >= UNHEALTHY_THRESHOLD:
        return ComponentStatus.UNHEALTHY
    if failing:
        return ComponentStatus.DEGRADED
    return ComponentStatus.HEALTHY


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Overall status plus a probe result per storage backend.",
)
async def health_check(settings: SettingsDep, factory: FactoryDep) -> HealthResponse:
    components = await probe_backends(factory)
    return HealthResponse(
        status=overall_status(components),
        version=settings.app.version,
        environment=settings.app.environment,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Answers as long as the process serves requests.",
)
async def liveness() -> LivenessResponse:
    return LivenessResponse()


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    description="Ready only when every storage backend answers its probe.",
)
async def readiness(factory: FactoryDep) -> ReadinessResponse:
    checks = {
        c.name: c.status is ComponentStatus.HEALTHY for c in await probe_backends(factory)
    }
    return ReadinessResponse(ready=all(checks.values()), checks=checks)
