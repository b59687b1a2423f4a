"""
Authentication and tenancy dependencies for FastAPI.

The tenant is resolved once per request from the authenticated user and
handed to services explicitly.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from triplog.app.core.jwt import decode_access_token
from triplog.app.db.session import get_db
from triplog.app.services.tenancy import TenantContext, resolve_tenant

# HTTP Bearer security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> dict:
    """
    FastAPI dependency for JWT authentication.
    
    Returns:
        Decoded token payload containing user information
        
    Raises:
        HTTPException: 401 if the token is invalid or carries no user_id
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    if not payload.get("user_id"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    return payload


async def get_tenant_context(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
) -> TenantContext:
    """Resolve the caller's tenant. Raises TenantNotFoundError (403) if unlinked."""
    return await resolve_tenant(db, str(current_user["user_id"]))
