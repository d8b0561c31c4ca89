"""Authentication endpoints: login, logout, me."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ..core.errors import AuthenticationFailure
from ..core.scope import resolve_scope
from ..core.security import create_access_token, get_current_session
from ..core.session import SessionContext, session_registry
from ..services.record_store import USERS, AuthProvider, RecordStore, get_auth_provider, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Request / Response schemas ──────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    barangay_id: Optional[str]


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


def _user_response(ctx: SessionContext) -> UserResponse:
    scope = ctx.scope
    return UserResponse(
        id=scope.actor_id,
        email=scope.email,
        full_name=scope.full_name,
        role=scope.role,
        barangay_id=scope.barangay_id,
    )


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
def login(
    req: LoginRequest,
    store: RecordStore = Depends(get_store),
    auth: AuthProvider = Depends(get_auth_provider),
):
    """Authenticate, resolve the actor's scope once, and open a session."""
    account_id = auth.authenticate(req.email, req.password)
    profile = store.get_by_id(USERS, account_id)
    if profile is None:
        logger.warning("Account %s authenticated but has no directory profile", account_id)
        raise AuthenticationFailure("Account has no user profile")

    ctx = session_registry.open(resolve_scope(profile))
    token = create_access_token({
        "sub": ctx.scope.actor_id,
        "sid": ctx.session_id,
        "role": ctx.scope.role,
        "exp": ctx.expires_at,
    })
    return TokenResponse(access_token=token, user=_user_response(ctx))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(ctx: SessionContext = Depends(get_current_session)):
    """End the session; its token stops resolving immediately."""
    session_registry.close(ctx.session_id)


@router.get("/me", response_model=UserResponse)
def get_me(ctx: SessionContext = Depends(get_current_session)):
    """Return the currently authenticated actor's profile."""
    return _user_response(ctx)
