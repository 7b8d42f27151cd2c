"""Bearer-token guard for the admin routes."""

from __future__ import annotations

import logging
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.config import settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
ADMIN_ROLE = "admin"

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_admin_token(token: str) -> dict[str, Any]:
    if not settings.ADMIN_JWT_SECRET:
        logger.error("AUTH_REQUIRED is set but ADMIN_JWT_SECRET is missing")
        raise _unauthorized("Admin authentication is not configured")
    try:
        return jwt.decode(
            token,
            settings.ADMIN_JWT_SECRET,
            algorithms=[JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
            options={"verify_aud": settings.JWT_AUDIENCE is not None},
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")


async def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> dict[str, Any] | None:
    """Admin precondition; a no-op when ``AUTH_REQUIRED`` is off."""

    if not settings.AUTH_REQUIRED:
        return None
    if credentials is None:
        raise _unauthorized("Missing bearer token")

    claims = decode_admin_token(credentials.credentials)
    if claims.get("role") != ADMIN_ROLE:
        logger.warning("Rejected non-admin token", extra={"subject": claims.get("sub")})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin role required")
    return claims


AdminDependency = Annotated[dict[str, Any] | None, Depends(require_admin)]
