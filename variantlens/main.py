"""
VariantLens FastAPI application.

Run with:
    uvicorn main:app --reload --port 8000
"""
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import (
    APP_VERSION,
    COMMIT_SHA,
    LOG_LEVEL,
    get_feature_flags,
    get_pipeline_limits,
    get_upstream_urls,
)
from .errors import RateLimitedError, VariantLensError
from .routers import audit, batch, health, variant
from .services.container import ServiceContainer, build_services

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def _variantlens_error_handler(request: Request, exc: VariantLensError):
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(max(1, exc.retry_after))}
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in exc.errors()
    )
    return JSONResponse({"error": f"Invalid request: {details}", "code": "VALIDATION_ERROR"}, status_code=400)


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    code = {401: "UNAUTHORIZED", 404: "NOT_FOUND", 405: "METHOD_NOT_ALLOWED"}.get(exc.status_code, "HTTP_ERROR")
    return JSONResponse({"error": str(exc.detail), "code": code}, status_code=exc.status_code, headers=getattr(exc, "headers", None))


async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse({"error": "Internal server error", "code": "INTERNAL_ERROR"}, status_code=500)


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    app = FastAPI(
        title="VariantLens API",
        description="Resolves protein variants to structures, exact residue mappings and verbatim evidence. Research use only.",
        version=APP_VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.services = services or build_services()

    app.add_exception_handler(VariantLensError, _variantlens_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(health.router)
    app.include_router(variant.router)
    app.include_router(batch.router)
    app.include_router(audit.router)

    @app.on_event("startup")
    async def _on_startup():
        logger.info(f"VariantLens {APP_VERSION} ({COMMIT_SHA}) starting")
        logger.info(f"Pipeline limits: {get_pipeline_limits()}")
        logger.info(f"Feature flags: {get_feature_flags()}")
        logger.info(f"Upstream endpoints: {get_upstream_urls()}")

    @app.on_event("shutdown")
    async def _on_shutdown():
        """Stop batch workers and close upstream clients."""
        await app.state.services.aclose()

    return app
