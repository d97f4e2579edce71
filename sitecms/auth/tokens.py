"""
Bearer-token authentication for the admin API. Validates HS256 JWTs signed with the
configured secret; any valid, unexpired token with a subject is an admin session.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from ..config import Settings

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def decode_token(token: str, settings: Settings) -> Optional[dict]:
    """Decode and validate a JWT. Returns None when invalid or expired."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.debug("Rejected bearer token: %s", e)
        return None


def create_access_token(
    subject: str,
    settings: Settings,
    *,
    email: Optional[str] = None,
    role: str = "admin",
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a signed admin token (used by scripts and tests; login flows live elsewhere)."""
    minutes = expires_minutes if expires_minutes is not None else settings.jwt_expiration_minutes
    exp = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    payload = {"sub": subject, "role": role, "exp": exp}
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


class UserInfo(BaseModel):
    """User info from the bearer token."""

    sub: str
    email: Optional[str] = None
    role: str = "admin"


async def get_current_user_optional(
    request: Request,
    credentials: Annotated[
        Optional[HTTPAuthorizationCredentials], Depends(security)
    ] = None,
) -> Optional[UserInfo]:
    """
    Dependency: optional current user from Bearer token.
    Returns None if no token or invalid token.
    """
    if not credentials or not credentials.credentials:
        return None
    payload = decode_token(credentials.credentials, _settings(request))
    if not payload:
        return None
    sub = payload.get("sub")
    if not sub:
        return None
    return UserInfo(
        sub=sub,
        email=payload.get("email"),
        role=payload.get("role", "admin"),
    )


async def require_user(
    user: Annotated[Optional[UserInfo], Depends(get_current_user_optional)] = None,
) -> UserInfo:
    """Dependency: require authenticated user. Raises 401 if not logged in."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
