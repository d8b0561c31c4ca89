"""
Identity & scope resolution: who the actor is and which barangay they see.
"""
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..models.user import UserRole
from .errors import AuthenticationFailure, AuthorizationDenied


@dataclass(frozen=True)
class ActorScope:
    """The {role, unit} pair every data operation is checked against."""
    actor_id: str
    role: str                   # "admin" or "barangay"
    barangay_id: Optional[str]  # set iff role == "barangay"
    email: str = ""
    full_name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def resolve_scope(actor: Optional[Mapping[str, Any]]) -> ActorScope:
    """
    Build an ActorScope from the actor's directory profile.

    Raises AuthenticationFailure when there is no session/profile, and
    AuthorizationDenied when the profile is not a usable scope.
    """
    if not actor:
        raise AuthenticationFailure("No active session")

    role = str(actor.get("role") or "").strip().lower()
    if role not in UserRole.ALL:
        raise AuthorizationDenied(f"Unsupported role '{actor.get('role')}'")

    barangay_id = actor.get("barangay_id") or None
    if role == UserRole.BARANGAY and barangay_id is None:
        raise AuthorizationDenied("Barangay user is not bound to a barangay")
    if role == UserRole.ADMIN:
        barangay_id = None

    return ActorScope(
        actor_id=str(actor["id"]),
        role=role,
        barangay_id=str(barangay_id) if barangay_id is not None else None,
        email=actor.get("email") or "",
        full_name=actor.get("full_name") or "",
    )
