"""
FastAPI dependencies for authentication.
"""
from typing import Annotated, Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portray.core.database.engine import get_db
from portray.features.users.models import User, Session
from portray.features.users.auth import verify_session_token
from portray.utils import as_utc, utcnow


# auto_error is off so a missing header is reported as 401, not 403
security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_session(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> Session:
    """
    Resolve the session behind the bearer token.

    Raises:
        HTTPException: 401 when the header is missing, the token is invalid,
            or the session was revoked or has expired
    """
    if credentials is None:
        raise _unauthorized("Authentication required")

    payload = verify_session_token(credentials.credentials)

    session = await db.get(Session, payload["sid"])
    if session is None or session.user_id != payload["sub"]:
        raise _unauthorized("Invalid or expired token")

    if as_utc(session.expires_at) <= utcnow():
        await db.delete(session)
        await db.commit()
        raise _unauthorized("Invalid or expired token")

    return session


async def get_current_user(
    session: Annotated[Session, Depends(get_current_session)],
    db: Annotated[AsyncSession, Depends(get_db)]
) -> User:
    """
    Get the current authenticated user.

    Usage:
        @router.get("/me")
        async def get_me(user: User = Depends(get_current_user)):
            return user
    """
    result = await db.execute(select(User).where(User.id == session.user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise _unauthorized("User not found or inactive")

    return user


def get_authorization_header(request: Request) -> str:
    """
    Rate limit key: the bearer token when present, else the client address.
    Used with slowapi Limiter.
    """
    auth = request.headers.get("Authorization", "")
    if auth:
        return auth
    return request.client.host if request.client else "anonymous"
