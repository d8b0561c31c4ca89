"""
Per-session context: the resolved actor scope, populated once at sign-in
and dropped at sign-out or when the session's token expires. Passed
explicitly to every scoped operation.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from ..models.base import generate_uuid
from ..services.view_guard import ViewGuard
from .config import settings
from .errors import AuthenticationFailure
from .scope import ActorScope

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionContext:
    session_id: str
    scope: ActorScope
    expires_at: datetime
    views: ViewGuard = field(default_factory=ViewGuard)


class SessionRegistry:
    def __init__(self, clock: Callable[[], datetime] = _now):
        self._sessions: Dict[str, SessionContext] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def open(self, scope: ActorScope, lifetime: Optional[timedelta] = None) -> SessionContext:
        lifetime = lifetime or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        ctx = SessionContext(session_id=generate_uuid(), scope=scope, expires_at=self._clock() + lifetime)
        with self._lock:
            expired = self._pop_expired()
            self._sessions[ctx.session_id] = ctx
        for stale in expired:
            stale.views.close()
        logger.info("Session opened for actor %s (role=%s)", scope.actor_id, scope.role)
        return ctx

    def get(self, session_id: str) -> SessionContext:
        with self._lock:
            expired = self._pop_expired()
            ctx = self._sessions.get(session_id)
        for stale in expired:
            stale.views.close()
        if ctx is None:
            raise AuthenticationFailure("Session expired or signed out")
        return ctx

    def close(self, session_id: str) -> None:
        with self._lock:
            ctx = self._sessions.pop(session_id, None)
        if ctx is not None:
            ctx.views.close()
            logger.info("Session closed for actor %s", ctx.scope.actor_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _pop_expired(self):
        # Caller holds the lock
        now = self._clock()
        expired = [sid for sid, ctx in self._sessions.items() if ctx.expires_at <= now]
        if expired:
            logger.debug("Dropping %d expired session(s)", len(expired))
        return [self._sessions.pop(sid) for sid in expired]


session_registry = SessionRegistry()
