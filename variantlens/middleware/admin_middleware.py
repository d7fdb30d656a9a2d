"""
Admin Middleware for FastAPI
Shared-secret check for admin endpoints (header: x-admin-api-key).
"""
import logging
import secrets
from typing import Optional

from fastapi import Depends, Header

from ..dependencies import get_services
from ..errors import AuthError, ConfigError
from ..services.container import ServiceContainer

logger = logging.getLogger(__name__)


async def require_admin_key(
    x_admin_api_key: Optional[str] = Header(None),
    services: ServiceContainer = Depends(get_services),
) -> str:
    """
    Usage:
        @router.get("/audit")
        async def read_audit(admin: str = Depends(require_admin_key)):
            ...

    Raises:
        ConfigError: no admin key configured on the server (503)
        AuthError: header missing or wrong (401)
    """
    expected = services.admin_api_key
    if not expected:
        logger.error("Admin endpoint called but ADMIN_API_KEY is not configured")
        raise ConfigError("Admin access is not configured on this server")
    if not x_admin_api_key or not secrets.compare_digest(x_admin_api_key, expected):
        logger.warning("Rejected admin request with missing or invalid x-admin-api-key")
        raise AuthError("Invalid or missing admin API key")
    return "admin"
