"""Password hashing, session tokens and the FastAPI auth dependencies."""
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from .config import settings
from .errors import AuthenticationFailure, AuthorizationDenied
from .session import SessionContext, session_registry

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

bearer_scheme = HTTPBearer(auto_error=False)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    if "exp" not in to_encode:
        to_encode["exp"] = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
    to_encode["type"] = "access"
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Return the token payload, or None if it is invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        return None


def expired_session_id(token: str) -> Optional[str]:
    """Session id of a correctly signed token that has expired, else None."""
    try:
        jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM], options={"verify_exp": False}
        )
        return payload.get("sid")
    except jwt.PyJWTError:
        return None
    return None


def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> SessionContext:
    """Resolve the bearer token to a live session, or fail authentication."""
    if credentials is None:
        raise AuthenticationFailure("Not signed in")
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        sid = expired_session_id(credentials.credentials)
        if sid:
            session_registry.close(sid)
        raise AuthenticationFailure("Invalid or expired token")
    if payload.get("type") != "access" or "sid" not in payload:
        raise AuthenticationFailure("Invalid or expired token")
    ctx = session_registry.get(payload["sid"])
    if ctx.scope.actor_id != payload.get("sub"):
        raise AuthenticationFailure("Token does not match session")
    return ctx


def require_role(*roles: str):
    """Return a dependency that only lets the given roles through."""

    def _checker(ctx: SessionContext = Depends(get_current_session)) -> SessionContext:
        if ctx.scope.role not in roles:
            raise AuthorizationDenied("Insufficient permissions")
        return ctx

    return _checker
