"""
Request-scoped dependencies: tenant resolution, services, CSRF check

The registry, cache and database service are created once in the app
lifespan (see app.main) and stored on app.state; routers receive them
through these dependencies.
"""
import secrets
from typing import Optional

from fastapi import HTTPException, Request, status

from app.core.config import settings
from app.core.database import DatabaseService


def tenant_from_host(host: Optional[str]) -> str:
    """
    Tenant id is the first label of the host name

    Example:
        tenant_from_host("shop1.example.com") -> "shop1"
    """
    if not host:
        return ""
    return host.split(".")[0].strip()


async def get_tenant_id(request: Request) -> str:
    """FastAPI dependency: tenant id for the current request"""
    tenant_id = tenant_from_host(request.url.hostname)
    if not tenant_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Shop ID is required")
    return tenant_id


async def get_database(request: Request) -> DatabaseService:
    """FastAPI dependency: the process-wide DatabaseService"""
    return request.app.state.database


async def verify_csrf_token(request: Request) -> None:
    """
    Double-submit CSRF check: the X-CSRF-Token header must match the cookie

    Raises:
        HTTPException 403 when the token is missing or does not match
    """
    header_token = request.headers.get("X-CSRF-Token")
    cookie_token = request.cookies.get(settings.CSRF_COOKIE_NAME)

    if not header_token or not cookie_token or not secrets.compare_digest(header_token, cookie_token):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid CSRF token")
