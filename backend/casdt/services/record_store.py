"""
Record store and authentication collaborator.

The registry core only talks to these two narrow interfaces. The SQL
implementations below are the default backend; the hosted (Supabase)
implementations live in ``supabase_store``.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..core.config import settings
from ..core.errors import AuthenticationFailure, StoreUnavailable, ValidationFailure
from ..core.security import get_password_hash, verify_password
from ..models.barangay import Barangay
from ..models.base import SessionLocal, generate_uuid
from ..models.patient import Patient
from ..models.user import Credential, User

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

BARANGAYS = "barangays"
USERS = "users"
PATIENTS = "patients"


class RecordStore(ABC):
    """Row storage and querying. Filters are column == value conjunctions."""

    @abstractmethod
    def query(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        ...

    @abstractmethod
    def get_by_id(self, table: str, row_id: str) -> Optional[Row]:
        ...

    @abstractmethod
    def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        ...

    @abstractmethod
    def count(self, table: str) -> int:
        ...


class AuthProvider(ABC):
    """Credential issuance and verification."""

    @abstractmethod
    def authenticate(self, email: str, password: str) -> str:
        """Return the account id, or raise AuthenticationFailure."""

    @abstractmethod
    def create_credential(self, email: str, password: str) -> str:
        """Issue a credential and return its account id."""


# ── SQL backend ──────────────────────────────────────────────────────────────

TABLES = {
    BARANGAYS: Barangay,
    USERS: User,
    PATIENTS: Patient,
}


def _to_row(obj) -> Row:
    return {c.name: getattr(obj, c.name) for c in obj.__table__.columns}


class SqlRecordStore(RecordStore):
    def __init__(self, session_factory=None):
        self._session_factory = session_factory or SessionLocal

    @contextmanager
    def _session(self):
        db = self._session_factory()
        try:
            yield db
        except IntegrityError as exc:
            db.rollback()
            logger.info("Insert rejected by constraint: %s", exc.orig)
            raise ValidationFailure.single("__root__", "conflicts with an existing record") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Record store error: %s", exc)
            raise StoreUnavailable("Record store is unavailable") from exc
        finally:
            db.close()

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}")

    def query(self, table, filters=None, order_by=None, descending=False, limit=None):
        model = self._model(table)
        with self._session() as db:
            q = db.query(model)
            for column, value in (filters or {}).items():
                q = q.filter(getattr(model, column) == value)
            if order_by:
                col = getattr(model, order_by)
                q = q.order_by(col.desc() if descending else col.asc())
            if limit:
                q = q.limit(limit)
            return [_to_row(obj) for obj in q.all()]

    def get_by_id(self, table, row_id):
        model = self._model(table)
        with self._session() as db:
            obj = db.query(model).filter(model.id == row_id).first()
            return _to_row(obj) if obj is not None else None

    def insert(self, table, row):
        model = self._model(table)
        with self._session() as db:
            obj = model(**row)
            if getattr(obj, "id", None) is None:
                obj.id = generate_uuid()
            db.add(obj)
            db.commit()
            db.refresh(obj)
            return _to_row(obj)

    def count(self, table):
        model = self._model(table)
        with self._session() as db:
            return db.query(model).count()


class SqlAuthProvider(AuthProvider):
    def __init__(self, session_factory=None):
        self._session_factory = session_factory or SessionLocal

    def authenticate(self, email, password):
        db = self._session_factory()
        try:
            cred = db.query(Credential).filter(Credential.email == email.strip().lower()).first()
        except SQLAlchemyError as exc:
            raise StoreUnavailable("Authentication service is unavailable") from exc
        finally:
            db.close()
        if cred is None or not verify_password(password, cred.hashed_password):
            raise AuthenticationFailure("Incorrect email or password")
        return cred.id

    def create_credential(self, email, password):
        db = self._session_factory()
        try:
            cred = Credential(
                id=generate_uuid(),
                email=email.strip().lower(),
                hashed_password=get_password_hash(password),
            )
            account_id = cred.id
            db.add(cred)
            db.commit()
            return account_id
        except IntegrityError as exc:
            db.rollback()
            raise ValidationFailure.single("email", "already registered") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise StoreUnavailable("Authentication service is unavailable") from exc
        finally:
            db.close()


# ── Backend selection ────────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def _backends():
    if settings.STORE_BACKEND == "supabase":
        from .supabase_store import SupabaseAuthProvider, SupabaseRecordStore, create_supabase_client

        return (
            SupabaseRecordStore(create_supabase_client()),
            SupabaseAuthProvider(create_supabase_client(for_auth=True)),
        )
    return SqlRecordStore(), SqlAuthProvider()


def get_store() -> RecordStore:
    return _backends()[0]


def get_auth_provider() -> AuthProvider:
    return _backends()[1]
