"""
Access-scoped reads and writes.

Every patient, barangay and account operation goes through here. A
barangay user only ever reaches rows stamped with their own barangay; the
directory tables are admin-only. Checks run here even though the screens
never offer these paths to barangay users.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from ..core.errors import AuthorizationDenied, RecordNotFound, ValidationFailure
from ..core.scope import ActorScope
from ..models.base import generate_uuid, utcnow
from .patient_record import PatientDraft, PatientRecord, load_record, validate_record
from .record_store import BARANGAYS, PATIENTS, USERS, RecordStore, Row

logger = logging.getLogger(__name__)

SCOPED_COLUMN = "barangay_id"
ADMIN_ONLY_TABLES = (BARANGAYS, USERS)


@dataclass(frozen=True)
class QueryFilter:
    """Conjunction of column == value predicates, or an outright denial."""
    predicates: Dict[str, Any] = field(default_factory=dict)
    denied: bool = False

    def matches(self, row: Mapping[str, Any]) -> bool:
        if self.denied:
            return False
        return all(row.get(col) == value for col, value in self.predicates.items())


def scoped_query(table: str, scope: ActorScope) -> QueryFilter:
    """Filter an actor's reads of ``table`` must carry."""
    if table == PATIENTS:
        if scope.is_admin:
            return QueryFilter()
        return QueryFilter(predicates={SCOPED_COLUMN: scope.barangay_id})
    if table in ADMIN_ONLY_TABLES:
        return QueryFilter() if scope.is_admin else QueryFilter(denied=True)
    raise ValueError(f"Unknown table: {table}")


def require_access(table: str, scope: ActorScope) -> QueryFilter:
    qf = scoped_query(table, scope)
    if qf.denied:
        logger.warning("Actor %s (role=%s) denied access to %s", scope.actor_id, scope.role, table)
        raise AuthorizationDenied(f"Access to {table} requires an admin account")
    return qf


def matches_search(record: PatientRecord, term: Optional[str]) -> bool:
    if not term:
        return True
    needle = term.strip().lower()
    return needle in record.client_name.lower() or needle in record.client_address.lower()


class ScopedRecords:
    """Record-store access on behalf of one actor scope at a time."""

    def __init__(self, store: RecordStore):
        self.store = store

    # ── Patients ─────────────────────────────────────────────────────────────

    def list_patients(
        self,
        scope: ActorScope,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[PatientRecord]:
        """Newest first, optionally narrowed by a name/address search term."""
        qf = require_access(PATIENTS, scope)
        rows = self.store.query(PATIENTS, qf.predicates, order_by="created_at", descending=True)
        records = [load_record(row) for row in rows]
        records = [r for r in records if matches_search(r, search)]
        return records[:limit] if limit else records

    def get_patient(self, scope: ActorScope, patient_id: str) -> PatientRecord:
        qf = require_access(PATIENTS, scope)
        row = self.store.get_by_id(PATIENTS, patient_id)
        if row is None:
            raise RecordNotFound("Patient not found")
        if not qf.matches(row):
            logger.warning(
                "Actor %s tried to read patient %s outside barangay %s",
                scope.actor_id, patient_id, scope.barangay_id,
            )
            raise AuthorizationDenied("Patient belongs to another barangay")
        return load_record(row)

    def create_patient(
        self,
        scope: ActorScope,
        draft: Union[PatientDraft, Mapping[str, Any]],
    ) -> PatientRecord:
        """
        Insert a complete intake record. Barangay users always write to their
        own barangay; admins must pick one explicitly.
        """
        if not isinstance(draft, PatientDraft):
            draft = PatientDraft.from_mapping(draft)

        errors = []
        if scope.is_admin:
            barangay_id = draft.get("barangay_id")
            if not barangay_id:
                errors.append({"field": "barangay_id", "message": "select a barangay"})
        else:
            requested = draft.get("barangay_id")
            if requested and requested != scope.barangay_id:
                logger.info("Overriding client barangay %s with actor barangay %s", requested, scope.barangay_id)
            barangay_id = scope.barangay_id
            draft.set("barangay_id", barangay_id)

        try:
            record = validate_record(draft)
        except ValidationFailure as exc:
            raise ValidationFailure(errors + exc.errors) from exc
        if errors:
            raise ValidationFailure(errors)

        if self.store.get_by_id(BARANGAYS, barangay_id) is None:
            raise ValidationFailure.single("barangay_id", "unknown barangay")

        now = utcnow()
        record.id = generate_uuid()
        record.created_by = scope.actor_id
        record.created_at = now
        record.updated_at = now

        inserted = self.store.insert(PATIENTS, record.to_row())
        logger.info("Patient %s registered in barangay %s by %s", record.id, barangay_id, scope.actor_id)
        return load_record(inserted)

    def with_barangays(
        self,
        scope: ActorScope,
        records: List[PatientRecord],
    ) -> List[Tuple[PatientRecord, Optional[Row]]]:
        """Pair records with their barangay row for display (admins only)."""
        if not scope.is_admin:
            return [(r, None) for r in records]
        lookup = {b["id"]: b for b in self.list_barangays(scope)}
        return [(r, lookup.get(r.barangay_id)) for r in records]

    # ── Directory tables ─────────────────────────────────────────────────────

    def list_barangays(self, scope: ActorScope) -> List[Row]:
        qf = require_access(BARANGAYS, scope)
        return self.store.query(BARANGAYS, qf.predicates, order_by="name")

    def count_barangays(self, scope: ActorScope) -> int:
        require_access(BARANGAYS, scope)
        return self.store.count(BARANGAYS)

    def list_accounts(self, scope: ActorScope) -> List[Row]:
        qf = require_access(USERS, scope)
        return self.store.query(USERS, qf.predicates, order_by="created_at", descending=True)
