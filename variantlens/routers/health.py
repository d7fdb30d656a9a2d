"""
Health and readiness endpoints.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..config import get_pipeline_limits
from ..dependencies import get_services
from ..services.container import ServiceContainer

router = APIRouter(prefix="", tags=["health"])


@router.get("/")
async def root(services: ServiceContainer = Depends(get_services)):
    """Root endpoint."""
    return {
        "message": "VariantLens API",
        "status": "operational",
        "version": services.app_version,
        "fixtures": services.use_fixtures,
        "limits": get_pipeline_limits(),
    }


@router.get("/health")
async def health_check(services: ServiceContainer = Depends(get_services)):
    """Liveness: the process is up."""
    return {"status": "ok", "version": services.app_version}


@router.get("/ready")
async def readiness_check(services: ServiceContainer = Depends(get_services)):
    """Readiness: upstream reachability (503 when any is down)."""
    result = await services.readiness()
    return JSONResponse(result, status_code=200 if result["status"] == "ready" else 503)
