"""
Authentication utilities: password hashing and session tokens.
"""
from datetime import datetime, timedelta
from fastapi import HTTPException, status
import jwt
from passlib.context import CryptContext

from portray.core import config
from portray.utils import utcnow


pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def session_expiry(remember_me: bool = False) -> datetime:
    """24 hours for a regular login, 30 days with remember-me (configurable)."""
    if remember_me:
        return utcnow() + timedelta(days=config.REMEMBER_ME_TTL_DAYS)
    return utcnow() + timedelta(hours=config.SESSION_TTL_HOURS)


def create_session_token(session_id: str, user_id: str, expires_at: datetime) -> str:
    """
    Sign a bearer token for a session row.

    The token expires together with the session.
    """
    payload = {
        "sid": session_id,
        "sub": user_id,
        "exp": expires_at,
        "iat": utcnow(),
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_session_token(token: str) -> dict:
    """
    Verify a bearer token and return its payload.

    Raises:
        HTTPException: 401 if token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[config.JWT_ALGORITHM],
            options={"require": ["sid", "sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return payload
