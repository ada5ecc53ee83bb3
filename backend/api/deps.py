"""
SellerOps API Dependencies

Request-scoped session, bearer-token claims, and the tenant id every router
filters on.
"""

import uuid
from collections.abc import AsyncIterator

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from core.security import decode_access_token
from db.session import AsyncSessionLocal

settings = get_settings()
logger = structlog.get_logger()
bearer_scheme = HTTPBearer(auto_error=not settings.debug)

# Tenant used by the debug auth bypass
DEV_CUSTOMER_ID = "00000000-0000-0000-0000-000000000001"

DEV_USER = {
    "sub": "dev-user",
    "email": "dev@sellerops.local",
    "customer_id": DEV_CUSTOMER_ID,
}


async def get_db() -> AsyncIterator[AsyncSession]:
    async with AsyncSessionLocal() as session:
        yield session


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict:
    """Claims from the bearer token; a fixed dev user when debug is on."""
    if settings.debug:
        return DEV_USER
    if credentials is None:
        raise _unauthorized("Not authenticated")

    claims = decode_access_token(credentials.credentials)
    if claims is None:
        raise _unauthorized("Invalid or expired token")
    return claims


async def get_customer_id(user: dict = Depends(get_current_user)) -> uuid.UUID:
    """Tenant id from the `customer_id` claim. 403 when absent or malformed."""
    raw = user.get("customer_id")
    if not raw:
        logger.warning("auth.missing_customer_claim", sub=user.get("sub"))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No customer context")
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        logger.warning("auth.invalid_customer_claim", sub=user.get("sub"))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid customer context")
