"""
Barangay & account directory (admin only).
"""
import logging
from typing import List, Optional

from ..core.errors import PartialCreateFailure, StoreUnavailable, ValidationFailure
from ..core.scope import ActorScope
from ..models.user import UserRole
from .record_store import BARANGAYS, USERS, AuthProvider, Row
from .scoped_query import ScopedRecords, require_access

logger = logging.getLogger(__name__)


def _require_text(errors: List[dict], field: str, value: Optional[str]) -> str:
    value = (value or "").strip()
    if not value:
        errors.append({"field": field, "message": "is required"})
    return value


class DirectoryService:
    def __init__(self, records: ScopedRecords, auth: AuthProvider):
        self.records = records
        self.auth = auth

    @property
    def store(self):
        return self.records.store

    def create_barangay(self, scope: ActorScope, name: str, municipality: str, province: str) -> Row:
        require_access(BARANGAYS, scope)
        errors: List[dict] = []
        row = {
            "name": _require_text(errors, "name", name),
            "municipality": _require_text(errors, "municipality", municipality),
            "province": _require_text(errors, "province", province),
        }
        if errors:
            raise ValidationFailure(errors)
        created = self.store.insert(BARANGAYS, row)
        logger.info("Barangay %s (%s) created by %s", created["id"], created["name"], scope.actor_id)
        return created

    def create_account(
        self,
        scope: ActorScope,
        email: str,
        password: str,
        full_name: str,
        role: str,
        barangay_id: Optional[str] = None,
    ) -> Row:
        """
        Issue a credential, then persist the directory profile.

        Everything is validated before the credential is issued. If the
        profile insert fails afterwards the credential is NOT rolled back;
        PartialCreateFailure reports the orphaned account id.
        """
        require_access(USERS, scope)
        errors: List[dict] = []
        email = _require_text(errors, "email", email).lower()
        full_name = _require_text(errors, "full_name", full_name)
        if not password:
            errors.append({"field": "password", "message": "is required"})
        if role not in UserRole.ALL:
            errors.append({"field": "role", "message": f"choose from: {', '.join(UserRole.ALL)}"})
        if role == UserRole.BARANGAY and not barangay_id:
            errors.append({"field": "barangay_id", "message": "barangay users must be assigned a barangay"})
        if errors:
            raise ValidationFailure(errors)

        if role == UserRole.ADMIN:
            barangay_id = None
        elif self.store.get_by_id(BARANGAYS, barangay_id) is None:
            raise ValidationFailure.single("barangay_id", "unknown barangay")

        account_id = self.auth.create_credential(email, password)

        profile = {
            "id": account_id,
            "email": email,
            "full_name": full_name,
            "role": role,
            "barangay_id": barangay_id,
        }
        try:
            created = self.store.insert(USERS, profile)
        except (StoreUnavailable, ValidationFailure) as exc:
            logger.error(
                "Credential %s (%s) issued but profile insert failed; credential left orphaned: %s",
                account_id, email, exc,
            )
            raise PartialCreateFailure(
                "Account credential was created but the user profile could not be saved",
                orphaned_account_id=account_id,
                cause=exc,
            ) from exc
        logger.info("Account %s (%s, role=%s) created by %s", account_id, email, role, scope.actor_id)
        return created

    def list_barangays(self, scope: ActorScope) -> List[Row]:
        return self.records.list_barangays(scope)

    def list_accounts(self, scope: ActorScope) -> List[Row]:
        """Accounts newest first, each with its barangay row (or None)."""
        accounts = self.records.list_accounts(scope)
        lookup = {b["id"]: b for b in self.records.list_barangays(scope)}
        return [dict(a, barangay=lookup.get(a.get("barangay_id"))) for a in accounts]
