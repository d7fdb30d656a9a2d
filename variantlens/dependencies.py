"""
FastAPI dependencies: service container access and inbound rate limits.
"""
from fastapi import Depends, Request

from .errors import RateLimitedError
from .services.container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def client_id(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def _enforce(limiter, client: str, what: str) -> str:
    if not limiter.check_rate_limit(client):
        retry_after = limiter.get_retry_after(client)
        raise RateLimitedError(
            f"Too many {what} requests; limit is {limiter.max_requests} per {limiter.window_seconds}s",
            retry_after=retry_after,
        )
    return client


async def variant_rate_limit(
    request: Request, services: ServiceContainer = Depends(get_services)
) -> str:
    return _enforce(services.variant_limiter, client_id(request), "variant")


async def batch_rate_limit(
    request: Request, services: ServiceContainer = Depends(get_services)
) -> str:
    return _enforce(services.batch_limiter, client_id(request), "batch")
