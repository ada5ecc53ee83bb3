"""
SellerOps Security Utilities

HS256 bearer tokens carrying the tenant claim (`customer_id`). Sign-in lives
with the hosted auth provider; this module mints tokens for scripts and tests
and validates incoming ones.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from core.config import get_settings

DEFAULT_TOKEN_TTL = timedelta(hours=24)


def create_access_token(claims: dict, ttl: timedelta | None = None) -> str:
    settings = get_settings()
    payload = {**claims, "exp": datetime.now(timezone.utc) + (ttl or DEFAULT_TOKEN_TTL)}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Verified claims, or None for a bad signature, malformed token, or expiry."""
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
