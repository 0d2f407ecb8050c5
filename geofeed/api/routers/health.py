"""
Health check router for observability.
"""
from fastapi import APIRouter

from geofeed.api.dependencies import get_auth_circuit_breaker
from geofeed.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Health Check")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "healthy"}


@router.get("/health/ready", summary="Readiness Check")
async def readiness_check() -> dict:
    """
    Readiness check for Kubernetes.
    Reports the auth service circuit breaker and which profile source is wired.
    """
    circuit_breaker = get_auth_circuit_breaker()
    settings = get_settings()

    return {
        "status": "ready",
        "circuit_breaker": {
            "name": circuit_breaker.name,
            "state": circuit_breaker.state.value,
        },
        "profile_source": "auth_service" if settings.AUTH_SERVICE_URL else "in_memory",
    }
