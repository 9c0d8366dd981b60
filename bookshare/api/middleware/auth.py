"""Session tokens and current-user resolution."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from bookshare.config import settings
from bookshare.database import get_session
from bookshare.domain.models import User
from bookshare.services.users import UserService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def create_session_token(
    uid: str,
    email: str | None = None,
    name: str | None = None,
    picture: str | None = None,
    phone_number: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """Issue a signed session token carrying identity claims."""
    expire = datetime.now(timezone.utc) + (
        expires_in or timedelta(seconds=settings.session_max_age)
    )
    claims: dict[str, Any] = {"sub": uid, "exp": expire}
    for key, value in (
        ("email", email),
        ("name", name),
        ("picture", picture),
        ("phone_number", phone_number),
    ):
        if value is not None:
            claims[key] = value
    return jwt.encode(claims, settings.session_secret, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> dict[str, Any] | None:
    """Return the verified claims, or None for a bad or expired token."""
    try:
        claims = jwt.decode(
            token, settings.session_secret, algorithms=[settings.session_algorithm]
        )
    except JWTError as exc:
        logger.info("Rejected session token: %s", exc)
        return None
    if not claims.get("sub"):
        return None
    return claims


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the caller from the session cookie or a bearer token."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token and credentials:
        token = credentials.credentials

    claims = decode_session_token(token) if token else None
    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return await UserService(session).ensure_user(claims)
